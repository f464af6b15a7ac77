"""Directory scanning, safe reads and the staged output writer."""

import logging
import os
import shutil
import tempfile
from pathlib import Path

from ferry.errors import OutputWriteError, SourceReadError
from ferry.models import GeneratedFile

logger = logging.getLogger(__name__)

PHP_SUFFIX = ".php"
GENERATED_SUFFIXES = (".d.ts.map", ".d.ts", ".js")


def read_file_safe(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Cannot read %s: %s", path, exc)
        return None


def list_php_files(directory: Path) -> list[Path]:
    """Flat, name-sorted listing of ``*.php`` files; a missing directory has none."""
    if not directory.is_dir():
        return []
    try:
        return sorted(
            (entry for entry in directory.iterdir() if entry.suffix == PHP_SUFFIX and entry.is_file()),
            key=lambda entry: entry.name,
        )
    except OSError as exc:
        raise SourceReadError(f"Cannot list source directory {directory}: {exc}") from exc


def logical_path(path: Path, cwd: Path | None) -> str:
    """Repository-relative POSIX path, or the path itself when it lies outside ``cwd``."""
    if cwd is not None:
        try:
            return path.resolve().relative_to(cwd.resolve()).as_posix()
        except ValueError:
            pass
    return path.as_posix()


def is_generated_file(name: str) -> bool:
    return name.endswith(GENERATED_SUFFIXES)


def write_output_directory(output_dir: Path, files: list[GeneratedFile]) -> None:
    """Replace the generated contents of ``output_dir`` with ``files``.

    Everything is written to a staging directory beside ``output_dir`` first, so a
    failed write leaves the previous output untouched. Only then are stale generated
    files removed and the new set moved in. ``package.json`` is never deleted.
    """
    try:
        output_dir.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{output_dir.name}-", dir=output_dir.parent))
    except OSError as exc:
        raise OutputWriteError(f"Cannot prepare output directory {output_dir}: {exc}") from exc

    try:
        for generated in files:
            (staging / generated.name).write_text(generated.content, encoding="utf-8")

        output_dir.mkdir(exist_ok=True)
        keep = {generated.name for generated in files}
        for existing in output_dir.iterdir():
            if existing.is_file() and is_generated_file(existing.name) and existing.name not in keep:
                existing.unlink()
        for generated in files:
            os.replace(staging / generated.name, output_dir / generated.name)
    except OSError as exc:
        raise OutputWriteError(f"Cannot write output directory {output_dir}: {exc}") from exc
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    logger.debug("Wrote %d files to %s", len(files), output_dir)
