"""
Artifact packager: bundles rendered templates into one zip archive.

Each call writes its own temporary file and renames it into place only
after the archive is closed. A failed build publishes nothing.
"""
import logging
import os
import tempfile
import uuid
import zipfile
from pathlib import Path
from typing import Iterable, Optional

from config import settings
from core.errors import RenderFailure

logger = logging.getLogger(__name__)

FILE_PATHS = {
    "python/model.py.tpl": "python/{module}/model.py",
    "python/schemas.py.tpl": "python/{module}/schemas.py",
    "python/service.py.tpl": "python/{module}/service.py",
    "python/route.py.tpl": "python/{module}/route.py",
    "vue/api.ts.tpl": "vue/{module}/api.ts",
    "vue/edit.vue.tpl": "vue/{module}/edit.vue",
    "vue/index.vue.tpl": "vue/{module}/index.vue",
    "vue/index-tree.vue.tpl": "vue/{module}/index-tree.vue",
}


def file_paths(rendered: dict[str, str], module_name: str) -> dict[str, str]:
    """Map template id → archive path for one table's rendered output."""
    files = {}
    for template_id, code in rendered.items():
        pattern = FILE_PATHS.get(template_id)
        if pattern is None:
            raise RenderFailure(template_id, "no output path registered for this template")
        files[pattern.format(module=module_name)] = code
    return files


class ArtifactPackager:
    def __init__(self, output_dir: Optional[str] = None):
        self.output_dir = Path(output_dir or settings.DOWNLOAD_DIR)

    def package(self, bundles: Iterable[tuple[str, dict[str, str]]]) -> Path:
        """Write (module_name, rendered templates) bundles into a new archive and return its path.

        Bundles from different tables share one archive; paths that collide are
        written twice and the later entry wins on extraction.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix="gen-", suffix=".zip.part", dir=self.output_dir)
        tmp_path = Path(tmp_name)
        try:
            count = 0
            with os.fdopen(fd, "wb") as fh, zipfile.ZipFile(fh, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
                for module_name, rendered in bundles:
                    for path, code in file_paths(rendered, module_name).items():
                        zf.writestr(path, code)
                        count += 1
            final_path = self.output_dir / f"gen-{uuid.uuid4().hex}.zip"
            os.replace(tmp_path, final_path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            logger.warning("Packaging failed, discarded %s", tmp_path.name)
            raise
        logger.info("Packaged %d files into %s", count, final_path.name)
        return final_path
