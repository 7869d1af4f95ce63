"""Command-line interface to fmtools to render a single template."""

import argparse
import ast
import logging
import os
import site
import sys

import fmtools.loader
from fmtools.sink import StreamSink

log = logging.getLogger(__name__)


def _kv_pair(pair):
    """Convert a KEY=VALUE string to a 2-tuple of (KEY, VALUE).

    This is intended for usage with the type= argument to argparse.
    """
    key, sep, value = pair.partition("=")
    if not sep:
        msg = f"Expected a KEY=VALUE pair, got {pair}"
        raise argparse.ArgumentTypeError(msg)
    return key, value


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "-i",
        "--path",
        action="append",
        dest="paths",
        default=[],
        metavar="path",
        help=(
            "Add to the file loader's include paths.  For the package "
            "loader, this will add the path to Python's site directories."
        ),
    )
    parser.add_argument(
        "-v",
        "--var",
        action="append",
        dest="template_variables",
        default=[],
        type=_kv_pair,
        metavar="KEY=VALUE",
        help="Template variables, passed as KEY=VALUE pairs.",
    )
    parser.add_argument(
        "-l",
        "--literal",
        action="store_true",
        help="Read template variable values as Python literals (numbers, lists, ...).",
    )
    parser.add_argument(
        "-e",
        "--encoding",
        default="utf-8",
        help="Encoding of the template files (default: %(default)s).",
    )
    parser.add_argument(
        "-p",
        "--package",
        dest="loader_type",
        action="store_const",
        const=fmtools.loader.PackageLoader,
        default=fmtools.loader.FileLoader,
        help="Load based on package name instead of file path.",
    )
    parser.add_argument(
        "file_or_package",
        help="Filename or package to load.",
    )
    parser.add_argument(
        "output_file",
        type=argparse.FileType("w"),
        default=sys.stdout,
        nargs="?",
        help="Output file.  If unspecified, use stdout.",
    )

    opts = parser.parse_args(argv)

    variables = dict(opts.template_variables)
    if opts.literal:
        for key, value in variables.items():
            try:
                variables[key] = ast.literal_eval(value)
            except (ValueError, SyntaxError):
                parser.error(f"{key}: {value!r} is not a Python literal")

    loader_kwargs = {"encoding": opts.encoding}
    if opts.loader_type is fmtools.loader.PackageLoader:
        for path in opts.paths:
            site.addsitedir(path)
    else:
        opts.paths.append(os.path.dirname(opts.file_or_package) or ".")
        loader_kwargs["path"] = opts.paths

    loader = opts.loader_type(**loader_kwargs)
    template = loader.import_(opts.file_or_package)
    log.debug("rendering %s", opts.file_or_package)
    template(variables).__fmt__(StreamSink(opts.output_file))

    # Close the output file to avoid a ResourceWarning during unit
    # tests.  But don't close stdout, just flush it instead.
    if opts.output_file is sys.stdout:
        opts.output_file.flush()
    else:
        opts.output_file.close()


if __name__ == "__main__":
    main(sys.argv[1:])  # pragma: no cover
