"""!
@brief Tests for ODT configuration document generation.
"""

from __future__ import annotations

import sys
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from office_deploy import odt_config  # noqa: E402
from office_deploy.constants import Architecture, ProductId, UpdateChannel  # noqa: E402


def _parse(xml_str: str) -> ET.Element:
    """!
    @brief Parse generated XML, skipping the declaration line.
    """

    assert xml_str.startswith("<?xml")
    return ET.fromstring(xml_str.split("\n", 1)[1])


def _install_root(products, **kwargs) -> ET.Element:
    options = {
        "architecture": Architecture.X64,
        "channel": UpdateChannel.MONTHLY_ENTERPRISE,
        "log_dir": r"C:\ProgramData\OfficeDeploy\logs",
    }
    options.update(kwargs)
    return _parse(odt_config.build_install_xml(products, **options))


class TestBuildInstallXml:
    """!
    @brief ``Add`` documents.
    """

    def test_add_attributes(self) -> None:
        root = _install_root([ProductId.O365_PROPLUS_RETAIL], architecture=Architecture.X86)

        add = root.find("Add")
        assert add is not None
        assert add.get("OfficeClientEdition") == "32"
        assert add.get("Channel") == "MonthlyEnterprise"

    def test_products_keep_target_set_order(self) -> None:
        products = [ProductId.VISIO_PRO_RETAIL, ProductId.O365_PROPLUS_RETAIL, ProductId.PROJECT_STD_X_VOLUME]

        root = _install_root(products)

        assert [elem.get("ID") for elem in root.findall("Add/Product")] == [p.value for p in products]

    def test_pidkey_only_on_volume_products(self) -> None:
        root = _install_root([ProductId.VISIO_PRO_RETAIL, ProductId.VISIO_STD_X_VOLUME])

        retail, volume = root.findall("Add/Product")
        assert retail.get("PIDKEY") is None
        assert volume.get("PIDKEY") == "7WHWN-4T7MP-G96JF-G33KR-W8GF4"

    def test_product_key_override(self) -> None:
        root = _install_root(
            [ProductId.PROJECT_PRO_X_VOLUME],
            product_keys={"ProjectProXVolume": "AAAAA-BBBBB-CCCCC-DDDDD-EEEEE"},
        )

        assert root.find("Add/Product").get("PIDKEY") == "AAAAA-BBBBB-CCCCC-DDDDD-EEEEE"

    def test_retail_key_override_is_ignored(self) -> None:
        assert odt_config.resolve_product_key(ProductId.VISIO_PRO_RETAIL, {"VisioProRetail": "X"}) is None

    def test_languages_on_every_product(self) -> None:
        root = _install_root(
            [ProductId.O365_PROPLUS_RETAIL, ProductId.VISIO_PRO_RETAIL],
            languages=("en-us", "de-de"),
        )

        for product in root.findall("Add/Product"):
            assert [lang.get("ID") for lang in product.findall("Language")] == ["en-us", "de-de"]

    def test_fixed_options(self) -> None:
        root = _install_root([ProductId.O365_PROPLUS_RETAIL])

        display = root.find("Display")
        assert display.get("Level") == "None"
        assert display.get("AcceptEULA") == "TRUE"
        logging_elem = root.find("Logging")
        assert logging_elem.get("Level") == "Standard"
        assert logging_elem.get("Path") == r"C:\ProgramData\OfficeDeploy\logs"
        prop = root.find("Property")
        assert prop.get("Name") == "FORCEAPPSHUTDOWN"
        assert prop.get("Value") == "TRUE"

    def test_empty_product_list_rejected(self) -> None:
        with pytest.raises(ValueError):
            odt_config.build_install_xml(
                [],
                architecture=Architecture.X64,
                channel=UpdateChannel.CURRENT,
                log_dir="logs",
            )


class TestBuildUninstallXml:
    """!
    @brief ``Remove`` documents.
    """

    def test_remove_names_only_requested_product(self) -> None:
        root = _parse(odt_config.build_uninstall_xml([ProductId.VISIO_STD_X_VOLUME], log_dir="logs"))

        remove = root.find("Remove")
        assert remove is not None
        assert remove.get("All") is None
        assert [elem.get("ID") for elem in remove.findall("Product")] == ["VisioStdXVolume"]
        assert root.find("Add") is None
        assert root.find("Property").get("Name") == "FORCEAPPSHUTDOWN"

    def test_empty_product_list_rejected(self) -> None:
        with pytest.raises(ValueError):
            odt_config.build_uninstall_xml([], log_dir="logs")


class TestWriteConfiguration:
    """!
    @brief Writing the document to its fixed path.
    """

    def test_replaces_previous_document(self, tmp_path: Path) -> None:
        target = tmp_path / "office-deploy" / "configuration.xml"
        odt_config.write_configuration("<old/>", target)

        written = odt_config.write_configuration("<new/>", target)

        assert written == target
        assert target.read_text(encoding="utf-8") == "<new/>"

    def test_setup_command(self, tmp_path: Path) -> None:
        command = odt_config.build_setup_command(tmp_path / "setup.exe", tmp_path / "configuration.xml")

        assert command == [str(tmp_path / "setup.exe"), "/configure", str(tmp_path / "configuration.xml")]
