import re
from pathlib import Path

from setuptools import setup

SOURCE_ROOT = Path(__file__).resolve().parent

pkg_info = SOURCE_ROOT / "PKG-INFO"
in_source_package = pkg_info.exists()


def main():
    setup(
        name="appy-tools",
        version=detect_version(),
        description="Appy CLI tools",
        long_description="CLI tools for turning the prebuilt Appy WebView template APK into a custom app.",
        long_description_content_type="text/markdown",
        author="Appy Developers",
        install_requires=[
            "colorama >= 0.2.7, < 1.0.0",
            "frida >= 16.2.2, < 18.0.0",
        ],
        extras_require={
            "test": ["pytest"],
        },
        license="MIT",
        zip_safe=False,
        keywords="android apk manifest resources arsc webview template",
        classifiers=[
            "Development Status :: 4 - Beta",
            "Environment :: Console",
            "Intended Audience :: Developers",
            "License :: OSI Approved :: MIT License",
            "Natural Language :: English",
            "Operating System :: MacOS :: MacOS X",
            "Operating System :: Microsoft :: Windows",
            "Operating System :: POSIX :: Linux",
            "Programming Language :: Python :: 3",
            "Topic :: Software Development :: Build Tools",
        ],
        packages=["appy_tools"],
        entry_points={
            "console_scripts": [
                "appy-customize = appy_tools.customize:main",
            ]
        },
    )


def detect_version() -> str:
    if in_source_package:
        version_line = [
            line for line in pkg_info.read_text(encoding="utf-8").split("\n") if line.startswith("Version: ")
        ][0].strip()
        return version_line[9:]

    init_text = (SOURCE_ROOT / "appy_tools" / "__init__.py").read_text(encoding="utf-8")
    m = re.search(r'^__version__ = "([^"]+)"', init_text, re.MULTILINE)
    if m is None:
        return "0.0.0"
    return m.group(1)


if __name__ == "__main__":
    main()
