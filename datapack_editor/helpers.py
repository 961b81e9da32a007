"""Helper functions."""
from argparse import ArgumentParser, Namespace
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from json import JSONEncoder, dumps
from pathlib import Path
from typing import Any

import coloredlogs
from verboselogs import VerboseLogger


class EnhancedJSONEncoder(JSONEncoder):
    """Enhanced JSON encoder for specific classes."""

    def default(self, o: Any) -> Any:  # type: ignore[override]
        """Handle custom types JSON serialization."""
        if is_dataclass(o) and not isinstance(o, type):
            return asdict(o)
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if isinstance(o, set):
            return sorted(o)
        if isinstance(o, bytes):
            return f"<{len(o)} bytes>"
        return super().default(o)


def normalize_path(path: str) -> str:
    """Drop empty segments so ``a//b/`` and ``a/b`` name the same entry."""
    return "/".join(part for part in path.split("/") if part)


def canonical_path(path: str) -> str:
    """Normalize an archive path, keeping the trailing slash of a folder."""
    normalized = normalize_path(path)
    if normalized and path.endswith("/"):
        return f"{normalized}/"
    return normalized


def dump_to_file(
    logger: VerboseLogger, filename: str, content: str | Any
) -> None:
    """Save data to local file.

    Parameters
    ----------
    logger : verboselogs.VerboseLogger
        The program's logger.
    filename : str
        The file to write to.
    content : str or Any
        The data to write.

    """
    filepath = Path(filename)

    try:
        if not filepath.parent.exists():
            filepath.parent.mkdir(parents=True)

        if not isinstance(content, str):
            filepath.write_text(
                dumps(
                    content,
                    ensure_ascii=False,
                    cls=EnhancedJSONEncoder,
                    indent=4,
                )
            )
        else:
            filepath.write_text(content)

    except (FileNotFoundError, OSError, PermissionError, ValueError) as err:
        logger.error(f"Failed to write file to '{str(filepath)}': {err}")

    else:
        logger.info(f"Successfully wrote '{str(filepath)}'.")


def parse_options(description: str, argv: list[str] | None = None) -> Namespace:
    """Parse command-line arguments.

    Parameters
    ----------
    description : str
        The program's description.
    argv : list of str, optional
        Arguments to parse instead of ``sys.argv``.

    Returns
    -------
    argparse.Namespace
        Parsed command-line arguments as an object.

    """
    parser = ArgumentParser(description=description)

    parser.add_argument(
        "filename",
        type=str,
        help="the datapack archive to edit (handled extension: .zip)",
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="OUTPUT.zip",
        type=str,
        default=None,
        help="where to write the exported datapack "
        "(default: <name>.zip next to the input)",
    )
    parser.add_argument(
        "-n",
        "--name",
        metavar="DATAPACK_NAME",
        type=str,
        default=None,
        help="rename the datapack's root folder (and the output file)",
    )
    parser.add_argument(
        "-r",
        "--replace",
        metavar="ENTRY=FILE",
        action="append",
        default=[],
        help="replace (or add) an archive entry with a local file, "
        "may be repeated",
    )
    parser.add_argument(
        "--tree",
        action="store_true",
        help="print the datapack's file tree",
    )
    parser.add_argument(
        "--dump-tree",
        metavar="FILENAME.json",
        type=str,
        default=None,
        help="also write the file tree to a JSON file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="increase logs output verbosity (default: info, -v: verbose, "
        "-vv: debug, -vvv: spam)",
    )

    args: Namespace = parser.parse_args(argv)

    for replacement in args.replace:
        if "=" not in replacement:
            parser.error(f"--replace expects ENTRY=FILE, got '{replacement}'")

    return args


def init_logger(
    name: str,
    verbosity_level: str | int,
    formatting: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
) -> VerboseLogger:
    """Initialize the program's logger.

    Parameters
    ----------
    name : str
        The logger's name.
    verbosity_level : str or int
        Verbosity log level, either a level name or a ``-v`` count.
    formatting : str, optional
        The log format.

    Returns
    -------
    verboselogs.VerboseLogger
        The logger.

    """
    levels: list[str] = ["INFO", "VERBOSE", "DEBUG", "SPAM"]

    if isinstance(verbosity_level, int):
        level = levels[min(max(verbosity_level, 0), len(levels) - 1)]
    else:
        level = verbosity_level.upper()
        if level not in levels + ["WARNING", "ERROR"]:
            level = "INFO"

    logger = VerboseLogger(name)

    coloredlogs.install(
        logger=logger,
        level=level,
        fmt=formatting,
        isatty=True,
    )

    return logger
