from colorama import Fore, Style
import os.path


STYLE_FILE = Fore.CYAN + Style.BRIGHT
STYLE_ENTRY = Fore.LIGHTYELLOW_EX
STYLE_VALUE = Fore.GREEN + Style.BRIGHT
STYLE_CODE = Fore.WHITE + Style.DIM
STYLE_RESET_ALL = Style.RESET_ALL


def format_customizing(path, cwd):
    name = format_filename(path, cwd)
    return f"{STYLE_RESET_ALL}Customizing {STYLE_FILE}{name}{STYLE_RESET_ALL}..."


def format_patched_entry(entry):
    return f"  {STYLE_RESET_ALL}patched {STYLE_ENTRY}{entry}{STYLE_RESET_ALL}"


def format_dropped_entry(entry):
    return f"  {STYLE_CODE}dropped {entry}{STYLE_RESET_ALL}"


def format_customized(output_path, cwd, package_name, time_started, time_finished):
    name = format_filename(output_path, cwd)
    elapsed = int((time_finished - time_started) * 1000.0)
    return (
        f"{STYLE_RESET_ALL}Wrote {STYLE_FILE}{name}{STYLE_RESET_ALL} as {STYLE_VALUE}{package_name}{STYLE_RESET_ALL}"
        f"{STYLE_CODE} ({elapsed} ms){STYLE_RESET_ALL}"
    )


def format_filename(path, cwd):
    if path.startswith(cwd + os.path.sep):
        return path[len(cwd) + 1 :]
    return path
