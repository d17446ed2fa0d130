"""Reading translation files and writing per-language exports."""

import json
import logging
import os
import zipfile
from datetime import datetime

from . import MAX_FILE_SIZE, is_translated
from .errors import ValidationError
from .languages import detect_language_from_filename
from .path_codec import flatten, unflatten
from .project_model import ProjectData, UploadedFile

log = logging.getLogger(__name__)


# ── Import ───────────────────────────────────────────────────────

def parse_translation_file(filename: str, content: bytes) -> UploadedFile:
    """Validate and flatten one uploaded JSON document.

    Raises:
        ValidationError: wrong extension, too large, not UTF-8 JSON, or the
            document is not a JSON object.
    """
    name = os.path.basename(filename)
    if not name.lower().endswith(".json"):
        raise ValidationError("only .json files are accepted", name)
    if len(content) > MAX_FILE_SIZE:
        raise ValidationError(
            f"file is larger than {MAX_FILE_SIZE // (1024 * 1024)} MB", name)
    try:
        data = json.loads(content.decode("utf-8-sig"))
    except UnicodeDecodeError as e:
        raise ValidationError(f"file is not UTF-8 text: {e}", name) from e
    except json.JSONDecodeError as e:
        raise ValidationError(f"invalid JSON - {e}", name) from e
    if not isinstance(data, dict):
        raise ValidationError("top level of the document must be an object", name)

    return UploadedFile(
        filename=name,
        language_code=detect_language_from_filename(name),
        data=flatten(data),
        size=len(content),
    )


def load_translation_files(paths: list) -> tuple:
    """Read and parse files in the given order.

    A bad file never stops the others.

    Returns:
        ``(files, errors)``: the parsed UploadedFiles and one
        ValidationError per rejected file.
    """
    files = []
    errors = []
    for path in paths:
        name = os.path.basename(path)
        try:
            # Checked before reading so oversized files are never loaded
            if os.path.getsize(path) > MAX_FILE_SIZE:
                raise ValidationError(
                    f"file is larger than {MAX_FILE_SIZE // (1024 * 1024)} MB", name)
            with open(path, "rb") as f:
                content = f.read()
            files.append(parse_translation_file(path, content))
        except ValidationError as e:
            log.warning("Rejected %s", e)
            errors.append(e)
        except OSError as e:
            err = ValidationError(f"could not read file: {e}", name)
            log.warning("Rejected %s", err)
            errors.append(err)
    return files, errors


# ── Export ───────────────────────────────────────────────────────

def build_language_document(project: ProjectData, code: str) -> dict:
    """Return the nested document for one language.

    Only non-empty values are included, in key table order.
    """
    flat = {}
    for k in project.keys:
        value = k.translations.get(code)
        if is_translated(value):
            flat[k.key] = value
    return unflatten(flat)


def dump_language_document(project: ProjectData, code: str) -> str:
    """Serialize one language as pretty-printed JSON (2-space indent)."""
    return json.dumps(build_language_document(project, code), ensure_ascii=False, indent=2)


def _check_codes(project: ProjectData, codes: list):
    if not codes:
        raise ValidationError("no languages selected for export")
    unknown = [c for c in codes if project.get_language(c) is None]
    if unknown:
        raise ValidationError(f"unknown language(s): {', '.join(unknown)}")


def export_language(project: ProjectData, code: str, path: str) -> str:
    """Write ``code``'s document to ``path``; returns the path written."""
    _check_codes(project, [code])
    os.makedirs(os.path.dirname(path) if os.path.dirname(path) else ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(dump_language_document(project, code))
    log.info("Exported %s to %s", code, path)
    return path


def export_archive(project: ProjectData, codes: list, zip_path: str) -> str:
    """Write a zip with one ``<code>.json`` entry per language."""
    codes = list(dict.fromkeys(codes))
    _check_codes(project, codes)
    os.makedirs(os.path.dirname(zip_path) if os.path.dirname(zip_path) else ".", exist_ok=True)
    with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as zf:
        for code in codes:
            zf.writestr(f"{code}.json", dump_language_document(project, code))
    log.info("Exported %d language(s) to %s", len(codes), zip_path)
    return zip_path


def archive_filename(prefix: str = "translations", now: datetime = None) -> str:
    """Return ``<prefix>-YYYY-MM-DDTHH-MM-SS.zip``."""
    stamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    return f"{prefix}-{stamp}.zip"


def export_languages(project: ProjectData, codes: list, out_dir: str,
                     prefix: str = "translations") -> str:
    """Export a selection: one language as JSON, several as a zip.

    Returns:
        The path of the file written.
    """
    codes = list(dict.fromkeys(codes))
    _check_codes(project, codes)
    if len(codes) == 1:
        return export_language(project, codes[0], os.path.join(out_dir, f"{codes[0]}.json"))
    return export_archive(project, codes, os.path.join(out_dir, archive_filename(prefix)))
