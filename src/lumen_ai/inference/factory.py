"""Backend client factory: resolves a client class per backend family."""

from __future__ import annotations

import importlib
import logging
from typing import Any

from lumen_ai.inference.litellm_client import LiteLLMBackendClient
from lumen_ai.inference.protocols import IBackendClient

log = logging.getLogger(__name__)


def create_backend_client(
    family: str,
    *,
    api_key: str = "",
    api_base: str = "",
    client_spec: str = "litellm",
) -> IBackendClient:
    """Create a backend client for ``family``.

    When ``client_spec`` is ``"litellm"``, returns the built-in
    :class:`LiteLLMBackendClient`.

    When it's a dotted path like ``mypackage.clients:BedrockClient``, imports
    and instantiates the external class with the same keyword arguments.

    Raises:
        ProviderConfigError: If the built-in client does not support ``family``.
        ImportError: If the dotted-path class cannot be found.
        TypeError: If the resolved object is not callable.
    """
    if client_spec == "litellm":
        return LiteLLMBackendClient(family, api_key=api_key, api_base=api_base)

    log.info("Loading external backend client: %s", client_spec)
    cls = _import_dotted_path(client_spec)
    if not callable(cls):
        raise TypeError(
            f"Backend client {client_spec!r} resolved to {cls!r}, which is not callable"
        )
    return cls(family, api_key=api_key, api_base=api_base)


def _import_dotted_path(dotted: str) -> Any:
    """Import ``module.path:ClassName`` or ``module.path.attr``."""
    if ":" in dotted:
        module_path, obj_name = dotted.rsplit(":", 1)
    elif "." in dotted:
        module_path, obj_name = dotted.rsplit(".", 1)
    else:
        return importlib.import_module(dotted)

    mod = importlib.import_module(module_path)
    return getattr(mod, obj_name)
