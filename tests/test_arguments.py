import os
import tempfile
import unittest
from zipfile import ZipFile

from appy_tools.apk import TEMPLATE_PACKAGE_NAME
from appy_tools.application import ConsoleApplication
from appy_tools.customize import CustomizeApplication

from .data import TEMPLATE_APP_NAME, make_template_apk, set_compression_method


class DummyConsoleApplication(ConsoleApplication):
    def _usage(self):
        return "no usage"


class OptionsFileTestCase(unittest.TestCase):
    def test_options_file(self):
        with tempfile.NamedTemporaryFile("w", suffix=".txt", delete=False) as f:
            f.write("-q")
        try:
            test_cases = [("short", ["-O", f.name]), ("long", [f"--options-file={f.name}"])]
            for message, args in test_cases:
                with self.subTest(message, args=args):
                    app = DummyConsoleApplication(args=args)
                    self.assertTrue(app._quiet)
        finally:
            os.unlink(f.name)

    def test_options_file_missing(self):
        test_cases = [("no argument", ["-O"]), ("not a file", ["-O", "/nonexistent/options.txt"])]
        for message, args in test_cases:
            with self.subTest(message, args=args):
                with self.assertRaises(SystemExit):
                    DummyConsoleApplication(args=args)

    def test_options_file_given_twice(self):
        with tempfile.NamedTemporaryFile("w", suffix=".txt", delete=False) as f:
            f.write(f"-O {f.name}")
        try:
            with self.assertRaises(SystemExit):
                DummyConsoleApplication(args=["-O", f.name])
        finally:
            os.unlink(f.name)

    def test_not_quiet_by_default(self):
        app = DummyConsoleApplication(args=[])
        self.assertFalse(app._quiet)


class CustomizeArgumentsTestCase(unittest.TestCase):
    def test_defaults(self):
        app = CustomizeApplication(args=["-p", "com.example.myapp", "template.apk"])
        self.assertEqual("template.apk", app._path)
        self.assertEqual("template.custom.apk", app._output_path)
        self.assertEqual("com.example.myapp", app._customization.package_name)
        self.assertEqual(TEMPLATE_PACKAGE_NAME, app._customization.template_package_name)
        self.assertEqual([], app._customization.strings)
        self.assertIsNone(app._customization.url)
        self.assertFalse(app._customization.status_bar_dark)

    def test_options(self):
        args = [
            "--package",
            "com.example.myapp",
            "--template-package",
            "com.template.placeholder",
            "-s",
            "TestApp=My App",
            "--string",
            "Welcome=Hi=there",
            "--url",
            "https://example.org",
            "--status-bar-dark",
            "-o",
            "out.apk",
            "template.apk",
        ]
        app = CustomizeApplication(args=args)
        self.assertEqual("out.apk", app._output_path)
        self.assertEqual("com.template.placeholder", app._customization.template_package_name)
        self.assertEqual([("TestApp", "My App"), ("Welcome", "Hi=there")], app._customization.strings)
        self.assertEqual("https://example.org", app._customization.url)
        self.assertTrue(app._customization.status_bar_dark)

    def test_invalid_arguments(self):
        test_cases = [
            ("missing package", ["template.apk"]),
            ("missing template", ["-p", "com.example.myapp"]),
            ("not an apk", ["-p", "com.example.myapp", "template.zip"]),
            ("string without separator", ["-p", "com.example.myapp", "-s", "TestApp", "template.apk"]),
            ("string without old value", ["-p", "com.example.myapp", "-s", "=x", "template.apk"]),
            ("output overwrites template", ["-p", "com.example.myapp", "-o", "template.apk", "template.apk"]),
        ]
        for message, args in test_cases:
            with self.subTest(message, args=args):
                with self.assertRaises(SystemExit):
                    CustomizeApplication(args=args)


class CustomizeRunTestCase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.template_path = os.path.join(self.tmpdir.name, "template.apk")
        self.output_path = os.path.join(self.tmpdir.name, "template.custom.apk")
        make_template_apk(self.template_path)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_run(self):
        app = CustomizeApplication(
            args=["-q", "-p", "com.example.myapp", "-s", f"{TEMPLATE_APP_NAME}=Mine", self.template_path]
        )
        with self.assertRaises(SystemExit) as cm:
            app.run()
        self.assertEqual(0, cm.exception.code)
        with ZipFile(self.output_path) as z:
            self.assertIn("com.example.myapp".encode("utf-16-le"), z.read("AndroidManifest.xml"))

    def test_run_failure(self):
        app = CustomizeApplication(args=["-q", "-p", "com.example.averyveryverylongpackagename.app", self.template_path])
        with self.assertRaises(SystemExit) as cm:
            app.run()
        self.assertEqual(1, cm.exception.code)
        self.assertFalse(os.path.exists(self.output_path))

    def test_run_unsupported_compression(self):
        set_compression_method(self.template_path, 99)
        app = CustomizeApplication(args=["-q", "-p", "com.example.myapp", self.template_path])
        with self.assertRaises(SystemExit) as cm:
            app.run()
        self.assertEqual(1, cm.exception.code)
        self.assertFalse(os.path.exists(self.output_path))


if __name__ == "__main__":
    unittest.main()
