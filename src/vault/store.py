"""YAML-based vault state store.

state_dir/ 디렉토리에 vault별 스냅샷 YAML을 저장/로드:
- save: VaultSnapshot → {vault}.yaml
- load: {vault}.yaml → VaultSnapshot (Pydantic 검증 포함)
- exists / list_vaults
"""

from __future__ import annotations

import re
from pathlib import Path

import yaml
from loguru import logger

from src.config.settings import get_settings
from src.vault.models import VaultSnapshot

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def _file_stem(vault: str) -> str:
    """vault 주소 → 파일명 (":" 등 경로 불가 문자 치환)."""
    return _UNSAFE_CHARS.sub("_", vault)


class VaultStateStore:
    """YAML 기반 vault 스냅샷 저장소."""

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = base_dir if base_dir is not None else get_settings().state_dir

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def path_for(self, vault: str) -> Path:
        return self._base_dir / f"{_file_stem(vault)}.yaml"

    def save(self, snapshot: VaultSnapshot) -> Path:
        """스냅샷을 YAML 파일로 저장."""
        self._base_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(snapshot.vault)
        data = snapshot.model_dump(mode="json")
        path.write_text(
            yaml.dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False),
            encoding="utf-8",
        )
        logger.info("Vault snapshot saved: {} (total_assets={})", path, snapshot.total_assets)
        return path

    def load(self, vault: str) -> VaultSnapshot:
        """YAML 파일에서 스냅샷 로드.

        Raises:
            FileNotFoundError: 스냅샷 파일 없음
            pydantic.ValidationError: 스냅샷 검증 실패 (debt 합계 불일치 등)
        """
        path = self.path_for(vault)
        if not path.exists():
            msg = f"Vault snapshot not found: {path}"
            raise FileNotFoundError(msg)
        return self.load_path(path)

    @staticmethod
    def load_path(path: Path) -> VaultSnapshot:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        return VaultSnapshot.model_validate(raw)

    def exists(self, vault: str) -> bool:
        return self.path_for(vault).exists()

    def list_vaults(self) -> list[str]:
        """저장된 스냅샷의 vault 주소 목록."""
        if not self._base_dir.exists():
            return []
        return [
            self.load_path(path).vault for path in sorted(self._base_dir.glob("*.yaml"))
        ]
