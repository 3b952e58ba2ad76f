"""Composition root: load config, configure logging, and wire the collaborators."""

from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv

from ccomposer.content.registry import build_default_registry
from ccomposer.core.config import ComposerConfig, apply_env_overrides, load_composer_config
from ccomposer.core.provenance import ProvenanceEvent, ProvenanceLogger
from ccomposer.document.service import CourseService
from ccomposer.interchange.mecs import MECSAdapter
from ccomposer.storage.service import StorageService
from ccomposer.storage.store import InMemoryCourseStore, SqliteCourseStore
from ccomposer.storage.transfer import FileTransfer

from .context import ComposerContext

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
JOURNAL_FILENAME = "journal.jsonl"
LOGGER = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logging.getLogger("ccomposer").setLevel(numeric)


def bootstrap(
    config_path: Path | None = None,
    *,
    config: ComposerConfig | None = None,
    store_override: Path | None = None,
    log_level: str | None = None,
    in_memory: bool = False,
) -> ComposerContext:
    """
    Build a ``ComposerContext``.

    Parameters
    ----------
    config_path:
        YAML config; defaults to ``$COURSE_COMPOSER_CONFIG`` or ``config/composer.yaml``
        (defaults are used when neither exists).
    config:
        Pre-built config, skipping file loading (tests).
    store_override:
        SQLite path that wins over the config and environment.
    log_level:
        Forces the logging level (the CLI passes DEBUG for ``--verbose``).
    in_memory:
        Use a throwaway in-memory store and skip the edit journal.
    """

    load_dotenv(Path.cwd() / ".env")
    if config is None:
        config = apply_env_overrides(load_composer_config(config_path))
    if store_override is not None:
        storage_cfg = config.storage.model_copy(update={"sqlite_path": Path(store_override).expanduser().resolve()})
        config = config.model_copy(update={"storage": storage_cfg})

    configure_logging(log_level or config.logging.level)

    registry = build_default_registry(config.enabled_kinds)
    adapter = MECSAdapter(registry)

    if in_memory:
        store = InMemoryCourseStore()
        journal = None
    else:
        store = SqliteCourseStore(config.storage.sqlite_path)
        journal = (
            ProvenanceLogger(config.storage.sqlite_path.parent / JOURNAL_FILENAME)
            if config.logging.journal
            else None
        )

    course_service = CourseService(registry, defaults=config.defaults, journal=journal, adapter=adapter)
    storage = StorageService(
        store,
        FileTransfer(config.export.export_dir, indent=config.export.indent),
        adapter,
        key_prefix=config.storage.key_prefix,
        active_key=config.storage.active_key,
    )
    ctx = ComposerContext(
        config=config,
        registry=registry,
        adapter=adapter,
        course_service=course_service,
        storage=storage,
        journal=journal,
    )
    LOGGER.debug("Registered content kinds: %s", ", ".join(registry.kinds()))
    if journal is not None:
        journal.log(
            ProvenanceEvent(
                stage="bootstrap",
                message="Composer session started",
                agent="ccomposer.session",
                payload={"store": str(config.storage.sqlite_path), "kinds": registry.kinds()},
            )
        )
    return ctx
