# SPDX-License-Identifier: BSD-3-Clause

"""Command line interface.

Checks HTML files the same way the plugin checks responses, sharing its
result cache. This is useful for checking static pages, or for trying out
ignore rules and validator settings.
"""

from __future__ import annotations

import logging
import posixpath
import sys
from argparse import ArgumentParser, Namespace
from pathlib import Path
from tempfile import gettempdir
from typing import Optional, Sequence

from htmlvalidator.checker import HTMLChecker
from htmlvalidator.config import PluginConfig, PluginConfigBuilder
from htmlvalidator.errorpage import line_description
from htmlvalidator.version import VERSION_STRING
from htmlvalidator.vnuclient import DEFAULT_TIMEOUT, DEFAULT_VALIDATOR_URL

_LOG = logging.getLogger(__name__)


def request_path(file_name: str) -> str:
    """Returns the request path that ignore rules are matched against
    for the file C{file_name}.
    """
    return "/" + Path(file_name).as_posix().lstrip("/")


def report_path(report_dir: Path, file_name: str) -> Path:
    """Returns the path of the error page for the file C{file_name}.

    The file's path is mirrored below C{report_dir}, so files with the
    same name in different directories get separate error pages.
    """
    relative = posixpath.normpath(request_path(file_name)).lstrip("/")
    return report_dir / (relative + ".errors.html")


def build_config(args: Namespace) -> PluginConfig:
    """
    Creates the plugin configuration from command line arguments.

    @raise ValueError:
        If an argument value is not acceptable.
    """
    builder = PluginConfigBuilder()
    builder.set_validator_url(args.validator)
    builder.set_timeout(args.timeout)
    for path in args.ignore:
        builder.add_ignore_path(path)
    return builder.build()


def run(
    files: Sequence[str],
    checker: HTMLChecker,
    content_type: str,
    report_dir: Optional[Path] = None,
) -> int:
    """
    Checks the given files.

    @param files:
        Paths of the files to check.
    @param checker:
        Checker to use.
    @param content_type:
        Content type to check the files as.
    @param report_dir:
        If not C{None}, the error page for each failed file is written
        to this directory.
    @return:
        0 if all files passed or were ignored, 1 if any file failed,
        2 if any file could not be read.
    """
    exit_code = 0
    for file_name in files:
        try:
            content = Path(file_name).read_bytes()
        except OSError as ex:
            _LOG.error('Failed to read "%s": %s', file_name, ex.strerror or ex)
            exit_code = 2
            continue

        outcome, error_page = checker.handle(
            request_path(file_name), content_type, content
        )
        print(f"{file_name}: {outcome.status}")
        for message in outcome.messages:
            lines = line_description(message)
            print(f"  {message.type}: line {lines}: {message.message}")

        if error_page is not None:
            exit_code = max(exit_code, 1)
            if report_dir is not None:
                report_file = report_path(report_dir, file_name)
                report_file.parent.mkdir(parents=True, exist_ok=True)
                report_file.write_text(error_page, encoding="utf-8")
                _LOG.info('Wrote error page to "%s"', report_file)
    return exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse command line arguments and check the files."""

    parser = ArgumentParser(
        description="Check HTML files using the Nu Html Checker, "
        "sharing the result cache of the HTML validator plugin."
    )
    parser.add_argument("files", metavar="FILE", nargs="+", help="HTML file to check")
    parser.add_argument(
        "--validator",
        metavar="URL",
        default=DEFAULT_VALIDATOR_URL,
        help=f"URL of the checker web service (default: {DEFAULT_VALIDATOR_URL})",
    )
    parser.add_argument(
        "--timeout",
        metavar="SECONDS",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="seconds to wait for the checker (default: 30)",
    )
    parser.add_argument(
        "--ignore",
        metavar="PATH",
        action="append",
        default=[],
        help="do not check PATH; a trailing slash ignores a whole directory "
        "(can be passed multiple times)",
    )
    parser.add_argument(
        "--content-type",
        default="text/html; charset=utf-8",
        help="content type to check the files as",
    )
    parser.add_argument(
        "--cache-dir",
        metavar="DIR",
        type=Path,
        default=Path(gettempdir()),
        help="root directory for the result cache (default: system temp dir)",
    )
    parser.add_argument(
        "--report-dir",
        metavar="DIR",
        type=Path,
        help="write an error page for each failed file to DIR",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="increase amount of logging, can be passed multiple times",
    )
    parser.add_argument(
        "-V", "--version", action="version", version=f"%(prog)s {VERSION_STRING}"
    )
    args = parser.parse_args(argv)

    level_map = {0: logging.WARNING, 1: logging.INFO, 2: logging.DEBUG}
    level = level_map.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    try:
        config = build_config(args)
    except ValueError as ex:
        parser.error(str(ex))

    checker = HTMLChecker(config, args.cache_dir)
    try:
        return run(args.files, checker, args.content_type, args.report_dir)
    finally:
        checker.close()


if __name__ == "__main__":
    sys.exit(main())
