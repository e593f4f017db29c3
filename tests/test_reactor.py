import unittest

from appy_tools.reactor import Reactor


class TestReactor(unittest.TestCase):
    def test_runs_jobs_in_order(self):
        calls = []
        reactor = Reactor(lambda reactor: reactor.wait_until_stopped(5))

        reactor.schedule(lambda: calls.append(1))
        reactor.schedule(lambda: calls.append(2))
        reactor.schedule(reactor.stop)
        reactor.run()

        self.assertEqual([1, 2], calls)

    def test_failing_job_still_stops(self):
        stopped = []
        on_stop = []

        def fail():
            raise ValueError("boom")

        reactor = Reactor(lambda reactor: stopped.append(reactor.wait_until_stopped(5)), lambda: on_stop.append(True))
        reactor.schedule(fail)
        reactor.run()

        self.assertEqual([True], stopped)
        self.assertEqual([True], on_stop)


if __name__ == "__main__":
    unittest.main()
