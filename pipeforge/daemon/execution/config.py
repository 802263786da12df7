"""Config resolver -- turns a config reference into a ``PipelineDefinition``.

A config source is one of:

1. An already-parsed ``RunConfig`` (returned as-is) or a plain mapping
   (validated, no I/O).
2. A ``file:`` URI.  Local files are trusted: package references are used
   verbatim, relative paths included.
3. An ``http:`` / ``https:`` URL.  Remote documents are NOT trusted: a plugin
   package that looks like a local path (absolute, or starting with ``.``)
   is rejected before the document leaves this module, so a remote config can
   never make the daemon load code from the local filesystem.

Bare paths without a scheme are refused; callers must say ``file:``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx
from anyio import to_thread

from pipeforge.daemon.errors import FileOperationError, InvalidPluginReferenceError, UnsupportedProtocolError
from pipeforge.daemon.models.config import RunConfig
from pipeforge.daemon.models.pipeline import PipelineDefinition

if TYPE_CHECKING:
    from pipeforge.daemon.settings import PipeforgeSettings

logger = logging.getLogger(__name__)

ConfigSource = str | RunConfig | Mapping[str, Any]

_REMOTE_SCHEMES = frozenset({"http", "https"})

DEFAULT_FETCH_TIMEOUT = 30.0


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def resolve_config(
    source: ConfigSource,
    *,
    http_client: httpx.AsyncClient | None = None,
    settings: PipeforgeSettings | None = None,
) -> RunConfig:
    """Load a pipeline config document from *source*.

    Parameters
    ----------
    source:
        Inline document, ``file:`` URI or ``http(s):`` URL.
    http_client:
        Client used for remote fetches.  A temporary one is created (and
        closed) when omitted.
    settings:
        Only consulted for the fetch timeout of a temporary client.

    Raises
    ------
    UnsupportedProtocolError:
        *source* has no scheme, or a scheme other than file / http / https.
    InvalidPluginReferenceError:
        A remote document references a plugin package by local path.
    FileOperationError:
        A ``file:`` config could not be read.
    pydantic.ValidationError:
        The document does not have the config shape.
    """
    if isinstance(source, RunConfig):
        return source
    if isinstance(source, Mapping):
        return RunConfig.model_validate(source)

    parsed = urlparse(source)
    if not parsed.scheme:
        raise UnsupportedProtocolError

    if parsed.scheme in _REMOTE_SCHEMES:
        config = await _fetch_remote(source, http_client, settings)
        _check_remote_packages(config)
        return config
    if parsed.scheme == "file":
        return await _read_local(url2pathname(parsed.path))

    raise UnsupportedProtocolError(parsed.scheme)


async def resolve_pipeline(
    source: ConfigSource,
    *,
    http_client: httpx.AsyncClient | None = None,
    settings: PipeforgeSettings | None = None,
) -> PipelineDefinition:
    """Resolve *source* and flatten it into a ``PipelineDefinition``."""
    config = await resolve_config(source, http_client=http_client, settings=settings)
    return PipelineDefinition.from_config(config)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _fetch_remote(
    url: str,
    client: httpx.AsyncClient | None,
    settings: PipeforgeSettings | None,
) -> RunConfig:
    own_client = client is None
    if client is None:
        timeout = settings.config_fetch_timeout if settings else DEFAULT_FETCH_TIMEOUT
        client = httpx.AsyncClient(timeout=timeout)
    try:
        logger.debug("Fetching pipeline config from %s", url)
        response = await client.get(url, follow_redirects=True)
        response.raise_for_status()
        return RunConfig.model_validate_json(response.content)
    finally:
        if own_client:
            await client.aclose()


def _check_remote_packages(config: RunConfig) -> None:
    """Reject local-path package references in a remote document."""
    for slot, spec in config.plugins.present():
        if spec.is_local_path:
            logger.warning("Rejected remote config %r: %s references %s", config.name, slot, spec.package)
            raise InvalidPluginReferenceError(spec.package)


async def _read_local(path: str) -> RunConfig:
    try:
        raw = await to_thread.run_sync(_read_file, path)
    except OSError as exc:
        raise FileOperationError.from_os_error(exc, path) from exc
    return RunConfig.model_validate_json(raw)


def _read_file(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()
