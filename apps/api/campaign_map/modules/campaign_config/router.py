from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from .service import campaign_config, config_section

router = APIRouter(prefix="/config", tags=["config"])


@router.get("")
def get_config() -> Dict[str, Any]:
    return campaign_config()


@router.get("/{section}")
def get_config_section(section: str) -> Dict[str, Any]:
    return config_section(section)
