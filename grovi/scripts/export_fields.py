"""
Bulk export of every field owned by the signed-in user.
Reuses the stored session, or signs in with GROVI_USERNAME / GROVI_PASSWORD.

    python -m grovi.scripts.export_fields [format ...]
"""
import os
import sys
import logging

from ..config import settings
from ..errors import GroviError
from ..services.export_service import EXPORT_FORMATS
from ..state import AppState

logger = logging.getLogger(__name__)


def export_all(state: AppState, formats, output_dir: str) -> int:
    os.makedirs(output_dir, exist_ok=True)
    fields = state.fields.refresh()
    logger.info(f"Exporting {len(fields)} fields as {', '.join(formats)} to {output_dir}")

    written = 0
    used_paths = set()
    for field in fields:
        for fmt in formats:
            try:
                export = state.exports.download(field, fmt)
            except GroviError as e:
                logger.error(f"❌ {field.name} ({fmt}): {e}")
                continue
            path = os.path.join(output_dir, export.filename)
            if path in used_paths:
                # Another field's name sanitised to the same file name
                stem, extension = os.path.splitext(export.filename)
                path = os.path.join(output_dir, f"{stem}_{field.id}{extension}")
            used_paths.add(path)
            with open(path, "wb") as fh:
                fh.write(export.content)
            logger.info(f"✅ {path}")
            written += 1

    logger.info(f"Export finished. {written}/{len(fields) * len(formats)} files written.")
    return written


def main(argv=None) -> int:
    formats = (argv if argv is not None else sys.argv[1:]) or ["geojson"]
    unknown = [fmt for fmt in formats if fmt not in EXPORT_FORMATS]
    if unknown:
        logger.error(f"Unsupported format(s): {', '.join(unknown)}. Supported: {', '.join(EXPORT_FORMATS)}")
        return 2

    state = AppState()
    if not state.start():
        username = os.getenv("GROVI_USERNAME")
        password = os.getenv("GROVI_PASSWORD")
        if not username or not password:
            logger.error("No stored session. Set GROVI_USERNAME and GROVI_PASSWORD to sign in.")
            return 1
        try:
            state.session.login(username, password)
        except GroviError as e:
            logger.error(f"❌ Sign-in failed: {e}")
            return 1

    try:
        export_all(state, formats, settings.EXPORT_DIR)
    except GroviError as e:
        logger.error(f"❌ Could not load fields: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
