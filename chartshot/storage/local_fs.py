import logging
from pathlib import Path
from typing import Optional

from chartshot.core.errors import PersistenceFailed
from chartshot.core.interfaces import Storage

logger = logging.getLogger(__name__)


class LocalStorage(Storage):
    """Grava os screenshots em disco e devolve o caminho público /screenshots/<arquivo>."""

    def __init__(self, root: str = "./storage/screenshots", url_prefix: str = "/screenshots"):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.url_prefix = url_prefix.rstrip("/")

    def store(self, filename: str, data: bytes, content_type: str) -> Optional[str]:
        path = self.root / Path(filename).name
        tmp = path.with_name(path.name + ".tmp")
        try:
            tmp.write_bytes(data)
            tmp.replace(path)
        except OSError as e:
            raise PersistenceFailed(f"Falha gravando {path}: {e}") from e
        logger.debug("Screenshot gravado localmente: %s", path.resolve())
        return f"{self.url_prefix}/{path.name}"
