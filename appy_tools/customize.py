import argparse
import os
import time
from typing import List, Tuple
from zipfile import BadZipFile

from appy_tools.apk import TEMPLATE_PACKAGE_NAME, Customization, customize
from appy_tools.application import ConsoleApplication
from appy_tools.binpatch import PatchError
from appy_tools.cli_formatting import (
    format_customized,
    format_customizing,
    format_dropped_entry,
    format_patched_entry,
)


def main() -> None:
    app = CustomizeApplication()
    app.run()


def parse_string_rewrite(value: str) -> Tuple[str, str]:
    old_value, sep, new_value = value.partition("=")
    if sep == "" or old_value == "":
        raise argparse.ArgumentTypeError(f"expected OLD=NEW, got “{value}”")
    return (old_value, new_value)


class CustomizeApplication(ConsoleApplication):
    def _usage(self) -> str:
        return "%(prog)s [options] template.apk"

    def _add_options(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("template", help="template APK to customize", metavar="TEMPLATE")
        parser.add_argument("-o", "--output", help="output path", metavar="OUTPUT")
        parser.add_argument("-p", "--package", help="package ID of the generated app", metavar="NAME", required=True)
        parser.add_argument(
            "--template-package",
            help=f"package ID baked into the template (defaults to “{TEMPLATE_PACKAGE_NAME}”)",
            metavar="NAME",
            default=TEMPLATE_PACKAGE_NAME,
        )
        parser.add_argument(
            "-s",
            "--string",
            help="replace the template display string OLD with NEW, e.g. “TestApp=My App”",
            metavar="OLD=NEW",
            action="append",
            dest="strings",
            default=[],
            type=parse_string_rewrite,
        )
        parser.add_argument("-u", "--url", help="URL the generated app opens", metavar="URL")
        parser.add_argument(
            "--status-bar-dark", help="use dark status bar icons", action="store_true", default=False
        )

    def _initialize(self, parser: argparse.ArgumentParser, options: argparse.Namespace, args: List[str]) -> None:
        self._path = options.template
        if not self._path.endswith(".apk"):
            parser.error("path must end in .apk")

        self._output_path = options.output
        if self._output_path is None:
            self._output_path = self._path[: -len(".apk")] + ".custom.apk"
        if os.path.abspath(self._output_path) == os.path.abspath(self._path):
            parser.error("output path must differ from the template path")

        self._customization = Customization(
            package_name=options.package,
            template_package_name=options.template_package,
            strings=options.strings,
            url=options.url,
            status_bar_dark=options.status_bar_dark,
        )

    def _start(self) -> None:
        cwd = os.getcwd()
        self._update_status(format_customizing(self._path, cwd))
        time_started = time.time()
        try:
            result = customize(self._path, self._output_path, self._customization)
        except (PatchError, BadZipFile, OSError) as e:
            self._log("error", f"Error: {e}")
            self._exit(1)
            return
        time_finished = time.time()

        for entry in result.patched:
            self._log("info", format_patched_entry(entry))
        for entry in result.dropped:
            self._log("info", format_dropped_entry(entry))
        self._log(
            "info",
            format_customized(
                self._output_path, cwd, self._customization.package_name, time_started, time_finished
            ),
        )
        if result.dropped:
            self._log("warning", "Signature entries were removed, sign the output before installing it")
        self._exit(0)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
