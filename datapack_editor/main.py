"""Datapack editor command-line entrypoint."""
import asyncio
import sys
from argparse import Namespace
from pathlib import Path

from dependency_injector import providers
from dependency_injector.wiring import Provide, inject
from verboselogs import VerboseLogger

from datapack_editor.containers import AppContainer
from datapack_editor.errors import EntryNotFoundError, ExportFailedError, MalformedArchiveError
from datapack_editor.helpers import dump_to_file, init_logger, parse_options
from datapack_editor.models import ExportProgress, ProgressCallback, TreeNode
from datapack_editor.services.datapack_session import DatapackSession


def format_tree(nodes: list[TreeNode], level: int = 0) -> list[str]:
    """Render a tree as indented lines, folders suffixed with a slash."""
    lines: list[str] = []
    for node in nodes:
        lines.append(f"{'  ' * level}{node.name}{'/' if node.is_directory else ''}")
        lines.extend(format_tree(node.children, level + 1))
    return lines


def progress_logger(logger: VerboseLogger, step: int = 10) -> ProgressCallback:
    """Log export progress every ``step`` percent and on each phase change."""
    last: dict[str, float | str] = {"percent": -1.0, "phase": ""}

    def report(progress: ExportProgress) -> None:
        phase = progress.label.split(" ", 1)[0]
        bucket = progress.percent // step
        if phase != last["phase"] or bucket != last["percent"]:
            logger.verbose(f"{progress.percent:5.1f}% {progress.label}")
            last["phase"] = phase
            last["percent"] = bucket

    return report


def output_path(args: Namespace, session: DatapackSession) -> Path:
    source = Path(args.filename)
    output = Path(args.output) if args.output else source.with_name(session.export_filename)

    # Never overwrite the datapack being edited.
    if output.resolve() == source.resolve():
        output = output.with_name(f"{output.stem}_edited{output.suffix}")
    return output


def apply_replacements(
    session: DatapackSession, replacements: list[str], logger: VerboseLogger
) -> None:
    """Write local files over archive entries (``ENTRY=FILE``)."""
    for replacement in replacements:
        entry, local_file = replacement.split("=", 1)
        session.edit(entry, Path(local_file).read_bytes())
        logger.info(f"Replaced {entry} with {local_file}")


@inject
def main(
    args: Namespace,
    session: DatapackSession = Provide[AppContainer.session],
    logger: VerboseLogger = Provide[AppContainer.logger],
) -> int:
    """Program's entrypoint."""
    try:
        session.load(Path(args.filename).read_bytes(), Path(args.filename).name)

    except (NotImplementedError, OSError) as err:
        logger.error(f"Failed reading {args.filename}: {err}")
        return 1

    except MalformedArchiveError as err:
        logger.error(f"Failed parsing {args.filename}: {err}")
        return 1

    try:
        if args.name:
            session.set_datapack_name(args.name)

        if args.tree:
            print("\n".join(format_tree(session.display_tree())))

        if args.dump_tree:
            dump_to_file(logger, args.dump_tree, session.display_tree())

        if (args.tree or args.dump_tree) and not (
            args.output or args.replace or args.name
        ):
            return 0

        apply_replacements(session, args.replace, logger)

        output = output_path(args, session)
        data = asyncio.run(session.export(progress_logger(logger)))
        output.write_bytes(data)

    except (
        ValueError,
        IsADirectoryError,
        NotADirectoryError,
        EntryNotFoundError,
    ) as err:
        logger.error(f"Invalid edit: {err}")
        return 2

    except ExportFailedError as err:
        logger.error(f"Failed exporting {args.filename}: {err}")
        logger.debug("Full error details:", exc_info=True)
        return 1

    except OSError as err:
        logger.error(f"File access failed: {err}")
        return 1

    else:
        logger.info(f"Successfully wrote '{output}'.")
        return 0

    finally:
        session.close()


def run(argv: list[str] | None = None) -> int:
    """Console script entrypoint: build the container and call ``main``."""
    args = parse_options("Edit and re-export zip datapacks.", argv)

    app_container = AppContainer()
    app_container.logger.override(
        providers.Singleton(init_logger, "datapack_editor", args.verbose)
    )
    app_container.wire(modules=[__name__])
    app_container.init_resources()

    try:
        return main(args)
    finally:
        app_container.shutdown_resources()
        app_container.unwire()


if __name__ == "__main__":
    sys.exit(run())
