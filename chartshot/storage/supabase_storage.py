import logging
from datetime import datetime, timezone
from typing import Optional

from supabase import Client, create_client

from chartshot.core.errors import PersistenceFailed
from chartshot.core.interfaces import Storage

logger = logging.getLogger(__name__)


def get_client(url: Optional[str], key: Optional[str]) -> Optional[Client]:
    if not url or not key:
        logger.warning("Supabase não configurado. Defina SUPABASE_URL e SUPABASE_ANON_KEY para habilitar.")
        return None
    return create_client(url, key)


class SupabaseStorage(Storage):
    """
    Sobe os screenshots para um bucket do Supabase Storage, em pastas por dia
    (YYYY-MM-DD/<arquivo>), e devolve a URL pública.
    Sem client configurado, store() devolve None (não persistido, não é erro).
    """

    def __init__(self, client: Optional[Client], bucket: str = "screenshots"):
        self.client = client
        self.bucket = bucket

    def store(self, filename: str, data: bytes, content_type: str) -> Optional[str]:
        if self.client is None:
            return None
        key = f"{datetime.now(timezone.utc):%Y-%m-%d}/{filename}"
        try:
            bucket = self.client.storage.from_(self.bucket)
            bucket.upload(path=key, file=data, file_options={"content-type": content_type})
            url = bucket.get_public_url(key)
        except Exception as e:
            raise PersistenceFailed(f"Erro subindo {key} para o Supabase: {e}") from e
        logger.info("Arquivo enviado ao Supabase: %s", url)
        return url
