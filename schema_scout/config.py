# === FILE: schema_scout/config.py ===
"""
Модуль для загрузки и валидации конфигурации анализатора SchemaScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

__all__ = [
    "AnalyzerConfig",
    "AnalyzeOptions",
    "SiteScanOptions",
    "load_config",
]


class AnalyzerConfig(BaseModel):
    """Конфигурация процесса: таймауты, лимиты обхода, соглашения об @id."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    user_agent: str = Field(
        "Mozilla/5.0 (compatible; SchemaScout/1.0)", min_length=1, description="Заголовок User-Agent."
    )
    quick_timeout: float = Field(10.0, gt=0, description="Таймаут загрузки для быстрой проверки (секунд).")
    page_timeout: float = Field(30.0, gt=0, description="Таймаут загрузки для полного анализа и обхода (секунд).")

    max_pages: int = Field(25, ge=1, description="Лимит страниц по умолчанию для обхода сайта.")
    crawl_depth: int = Field(3, ge=0, description="Глубина обхода по умолчанию.")
    max_pages_limit: int = Field(100, ge=1, description="Верхняя граница max_pages в запросе.")
    max_depth_limit: int = Field(4, ge=0, description="Верхняя граница crawl_depth в запросе.")
    include_sitemaps: bool = Field(True, description="Добавлять URL из sitemap.xml в очередь обхода.")
    sitemap_paths: list[str] = Field(
        default_factory=lambda: ["/sitemap.xml", "/sitemap_index.xml"],
        description="Пути, по которым ищется sitemap.",
    )

    id_prefix: str = Field("schema:", min_length=1, description="Рекомендуемый префикс значений @id.")
    scans_dir: Optional[Path] = Field(Path("data/scans"), description="Каталог для JSON-файлов сканов.")
    blocked_domains: list[str] = Field(default_factory=list, description="Домены, запрещённые к анализу.")
    max_url_length: int = Field(2048, ge=16, description="Максимальная длина URL.")

    @field_validator("blocked_domains", mode="before")
    def _split_domains(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [d.strip().lower() for d in v.split(",") if d.strip()]
        return v

    @field_validator("sitemap_paths")
    def _absolute_paths(cls, v: list[str]) -> list[str]:
        return [p if p.startswith("/") else f"/{p}" for p in v]

    @model_validator(mode="after")
    def _check_defaults_within_limits(self) -> AnalyzerConfig:
        if self.max_pages > self.max_pages_limit:
            raise ValueError("max_pages must not exceed max_pages_limit")
        if self.crawl_depth > self.max_depth_limit:
            raise ValueError("crawl_depth must not exceed max_depth_limit")
        return self


class AnalyzeOptions(BaseModel):
    """Опции анализа одной страницы."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    deep_scan: bool = True
    entity_analysis: bool = True
    consistency_check: bool = True
    recommendations: bool = True


class SiteScanOptions(BaseModel):
    """Опции обхода сайта. Верхние границы проверяет :meth:`check_limits`."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_pages: int = Field(25, ge=1)
    crawl_depth: int = Field(3, ge=0)
    include_sitemaps: bool = True

    @classmethod
    def from_config(cls, config: AnalyzerConfig, **overrides: Any) -> SiteScanOptions:
        values: dict[str, Any] = {
            "max_pages": config.max_pages,
            "crawl_depth": config.crawl_depth,
            "include_sitemaps": config.include_sitemaps,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def check_limits(self, config: AnalyzerConfig) -> None:
        if self.max_pages > config.max_pages_limit:
            raise ValueError(f"max_pages must be <= {config.max_pages_limit}")
        if self.crawl_depth > config.max_depth_limit:
            raise ValueError(f"crawl_depth must be <= {config.max_depth_limit}")


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None) -> AnalyzerConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект AnalyzerConfig.
    Без пути берёт configs/default.yaml, а если его нет, значения по умолчанию.
    Для явно указанного, но отсутствующего файла бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return AnalyzerConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    try:
        return AnalyzerConfig(**data)
    except ValidationError:
        raise
