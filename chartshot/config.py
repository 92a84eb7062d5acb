import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from chartshot.core.interfaces import Storage

STORAGE_TYPES = ("local", "supabase", "none")


@dataclass
class StorageSettings:
    type: str = "local"                       # "local" | "supabase" | "none"
    path: str = "./storage/screenshots"
    bucket: str = "screenshots"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None


@dataclass
class Settings:
    max_concurrency: int = 3
    max_batch_size: int = 20
    headless: bool = True
    storage: StorageSettings = field(default_factory=StorageSettings)


def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = cfg.get(name) or {}
    if not isinstance(value, dict):
        raise TypeError(f"A chave '{name}' do config deve ser um objeto.")
    return value


def _int(value: Any, name: str) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"'{name}' deve ser inteiro (recebido: {value!r})") from None
    if n < 1:
        raise ValueError(f"'{name}' deve ser >= 1 (recebido: {n})")
    return n


def settings_from_dict(cfg: Optional[Dict[str, Any]], env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Monta Settings a partir do YAML já parseado. Variáveis de ambiente têm
    precedência sobre o arquivo (MAX_CONCURRENT_SCREENSHOTS, STORAGE_TYPE, ...).
    """
    env = os.environ if env is None else env
    cfg = cfg or {}
    if not isinstance(cfg, dict):
        raise TypeError("O config deve ser um objeto YAML (dict).")

    capture = _section(cfg, "capture")
    browser = _section(cfg, "browser")
    storage = _section(cfg, "storage")

    st = StorageSettings(
        type=env.get("STORAGE_TYPE") or storage.get("type", "local"),
        path=env.get("STORAGE_PATH") or storage.get("path", "./storage/screenshots"),
        bucket=env.get("SUPABASE_STORAGE_BUCKET") or storage.get("bucket", "screenshots"),
        supabase_url=env.get("SUPABASE_URL"),
        supabase_key=env.get("SUPABASE_ANON_KEY"),
    )
    if st.type not in STORAGE_TYPES:
        raise ValueError(f"storage.type inválido: {st.type} (use {', '.join(STORAGE_TYPES)})")

    return Settings(
        max_concurrency=_int(env.get("MAX_CONCURRENT_SCREENSHOTS") or capture.get("max_concurrency", 3),
                             "max_concurrency"),
        max_batch_size=_int(env.get("MAX_BATCH_SIZE") or capture.get("max_batch_size", 20), "max_batch_size"),
        headless=bool(browser.get("headless", True)),
        storage=st,
    )


def load_settings(path: Optional[str]) -> Settings:
    load_dotenv()
    cfg: Dict[str, Any] = {}
    if path and os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    return settings_from_dict(cfg)


def build_storage(st: StorageSettings) -> Optional[Storage]:
    if st.type == "none":
        return None
    if st.type == "supabase":
        from chartshot.storage.supabase_storage import SupabaseStorage, get_client
        return SupabaseStorage(get_client(st.supabase_url, st.supabase_key), bucket=st.bucket)
    from chartshot.storage.local_fs import LocalStorage
    return LocalStorage(st.path)
