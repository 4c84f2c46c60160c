from __future__ import annotations

from pathlib import Path

from patchgraph.app.registry.pd_templates import PD_NAMESPACE, load_pd_templates
from patchgraph.app.registry.vcv import load_vcv_plugins
from patchgraph.app.services.registry_service import Registry

DEFAULT_VCV_DIR = Path(__file__).resolve().parent / "data" / "vcv"

NAMESPACE_ALIASES: dict[str, str] = {
    "puredata": PD_NAMESPACE,
    "vanilla": PD_NAMESPACE,
    "vcv": "fundamental",
}


def load_builtin_registry(vcv_dir: Path | None = None) -> Registry:
    entries = [*load_pd_templates(), *load_vcv_plugins(vcv_dir or DEFAULT_VCV_DIR)]
    available = {entry.namespace.lower() for entry in entries}
    aliases = {alias: target for alias, target in NAMESPACE_ALIASES.items() if target in available}
    return Registry(entries, namespace_aliases=aliases)
