"""!
@brief Office Deployment Tool configuration documents.
@details Builds the ``configuration.xml`` consumed by ``setup.exe
/configure``. Install runs produce an ``Add`` element listing the reconciled
product set; uninstall runs produce a ``Remove`` element naming the requested
product without the ``All`` attribute. Both carry the same fixed display,
logging and force-shutdown options. The document is written to a fixed path
and replaced on every run.

@see https://learn.microsoft.com/deployoffice/office-deployment-tool-configuration-options
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Mapping, Sequence
from pathlib import Path

from . import logging_ext
from .constants import Architecture, ProductId, UpdateChannel


def _indent_xml(elem: ET.Element, level: int = 0) -> None:
    """!
    @brief Add indentation to XML elements for pretty printing.
    """
    indent = "\n" + "  " * level
    if len(elem):
        if not elem.text or not elem.text.strip():
            elem.text = indent + "  "
        if not elem.tail or not elem.tail.strip():
            elem.tail = indent
        for child in elem:
            _indent_xml(child, level + 1)
        if not child.tail or not child.tail.strip():
            child.tail = indent
    else:
        if level and (not elem.tail or not elem.tail.strip()):
            elem.tail = indent


def _serialise(root: ET.Element) -> str:
    _indent_xml(root)
    xml_str = ET.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{xml_str}'


def _append_fixed_options(root: ET.Element, log_dir: Path | str) -> None:
    display_elem = ET.SubElement(root, "Display")
    display_elem.set("Level", "None")
    display_elem.set("AcceptEULA", "TRUE")

    logging_elem = ET.SubElement(root, "Logging")
    logging_elem.set("Level", "Standard")
    logging_elem.set("Path", str(log_dir))

    prop = ET.SubElement(root, "Property")
    prop.set("Name", "FORCEAPPSHUTDOWN")
    prop.set("Value", "TRUE")


def resolve_product_key(product: ProductId, overrides: Mapping[str, str] | None = None) -> str | None:
    """!
    @brief Look up the licensing key for ``product``.
    @details Retail subscription editions never carry a key. Volume editions
    use the configured override when present, otherwise the catalog default.
    """

    info = product.info
    if not info.requires_key:
        return None
    if overrides:
        override = overrides.get(product.value)
        if override:
            return str(override)
    return info.default_key


def build_install_xml(
    products: Sequence[ProductId],
    *,
    architecture: Architecture,
    channel: UpdateChannel,
    log_dir: Path | str,
    languages: Sequence[str] = ("MatchOS",),
    product_keys: Mapping[str, str] | None = None,
) -> str:
    """!
    @brief Generate the install configuration for the reconciled product set.
    @param products Ordered target set; must not be empty.
    @param architecture Target bitness, written as ``OfficeClientEdition``.
    @param channel Update channel written on the ``Add`` element.
    @param log_dir Directory ODT writes its own logs to.
    @param languages Language identifiers added to every product.
    @param product_keys Optional per-product key overrides keyed by product id.
    @returns XML configuration as a string.
    @throws ValueError When ``products`` is empty.
    """
    if not products:
        raise ValueError("At least one product must be specified")

    root = ET.Element("Configuration")

    add_elem = ET.SubElement(root, "Add")
    add_elem.set("OfficeClientEdition", architecture.client_edition)
    add_elem.set("Channel", channel.value)

    for product in products:
        product_elem = ET.SubElement(add_elem, "Product")
        product_elem.set("ID", product.value)
        key = resolve_product_key(product, product_keys)
        if key:
            product_elem.set("PIDKEY", key)
        for lang in languages:
            lang_elem = ET.SubElement(product_elem, "Language")
            lang_elem.set("ID", lang)

    _append_fixed_options(root, log_dir)
    return _serialise(root)


def build_uninstall_xml(products: Sequence[ProductId], *, log_dir: Path | str) -> str:
    """!
    @brief Generate the removal configuration for the requested product(s).
    @details The ``Remove`` element never sets ``All`` so unrelated Click-to-Run
    products stay installed.
    @throws ValueError When ``products`` is empty.
    """
    if not products:
        raise ValueError("At least one product must be specified")

    root = ET.Element("Configuration")
    remove_elem = ET.SubElement(root, "Remove")
    for product in products:
        product_elem = ET.SubElement(remove_elem, "Product")
        product_elem.set("ID", product.value)

    _append_fixed_options(root, log_dir)
    return _serialise(root)


def write_configuration(content: str, output_path: Path | str) -> Path:
    """!
    @brief Replace the configuration document at ``output_path``.
    @details Any previous document is deleted first; there is no versioning or
    appending.
    @returns Path to the written file.
    """
    log = logging_ext.get_human_logger()
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists():
        path.unlink()
    path.write_text(content, encoding="utf-8")

    log.info("ODT configuration written to: %s", path)
    logging_ext.get_machine_logger().info(
        "odt_config_written",
        extra={"event": "odt_config_written", "path": str(path), "content": content},
    )
    return path


def build_setup_command(setup_path: Path | str, config_path: Path | str) -> list[str]:
    """!
    @brief Command line for ``setup.exe /configure <config>``.
    """

    return [str(setup_path), "/configure", str(config_path)]


__all__ = [
    "build_install_xml",
    "build_setup_command",
    "build_uninstall_xml",
    "resolve_product_key",
    "write_configuration",
]
