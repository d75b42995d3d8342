"""!
@brief Static data and enumerations for Office Deploy.
@details Centralises the closed product catalog, licensing families and
tiers, Click-to-Run channel metadata, legacy MSI suite definitions, registry
locations, and exit codes so reconciliation, detection and the deployment
flows work from a single source of truth.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Tuple

try:  # pragma: no cover - Windows registry handles are optional on test hosts.
    import winreg
except ImportError:  # pragma: no cover - test scaffolding supplies substitutes.
    winreg = None  # type: ignore[assignment]


if winreg is not None:  # pragma: no branch - deterministic assignments.
    HKLM = winreg.HKEY_LOCAL_MACHINE
else:  # pragma: no cover - exercised implicitly in non-Windows CI.
    HKLM = 0x80000002


# ---------------------------------------------------------------------------
# Product catalog
# ---------------------------------------------------------------------------


class ProductFamily(Enum):
    """!
    @brief Companion application families that substitution rules act within.
    """

    VISIO = "visio"
    PROJECT = "project"


class LicenseTier(Enum):
    """!
    @brief Licensing models a product edition is sold under.
    """

    VOLUME = "volume"
    RETAIL_SUBSCRIPTION = "retail-subscription"


class ProductId(Enum):
    """!
    @brief Closed catalog of Click-to-Run product identifiers this tool deploys.
    @details Values match the ``Product ID`` attribute understood by the Office
    Deployment Tool and the entries found in ``ProductReleaseIds``.
    """

    O365_PROPLUS_RETAIL = "O365ProPlusRetail"
    VISIO_STD_X_VOLUME = "VisioStdXVolume"
    VISIO_PRO_X_VOLUME = "VisioProXVolume"
    VISIO_PRO_RETAIL = "VisioProRetail"
    PROJECT_STD_X_VOLUME = "ProjectStdXVolume"
    PROJECT_PRO_X_VOLUME = "ProjectProXVolume"
    PROJECT_PRO_RETAIL = "ProjectProRetail"

    @classmethod
    def parse(cls, value: str) -> ProductId:
        """!
        @brief Resolve a product identifier string, ignoring case.
        @param value Identifier such as ``"VisioProRetail"``.
        @returns Matching :class:`ProductId` member.
        @throws ValueError When ``value`` is outside the catalog.
        """

        candidate = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == candidate:
                return member
        available = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown product ID '{value}'. Available: {available}")

    @property
    def info(self) -> ProductInfo:
        return PRODUCT_CATALOG[self]

    @property
    def family(self) -> ProductFamily | None:
        return PRODUCT_CATALOG[self].family

    @property
    def tier(self) -> LicenseTier:
        return PRODUCT_CATALOG[self].tier


@dataclass(frozen=True)
class ProductInfo:
    """!
    @brief Descriptive metadata for a catalog entry.
    @details ``family`` is ``None`` for the full suite, which has no companion
    family. ``default_key`` holds the published KMS client key for volume
    editions; retail subscription editions activate through sign-in and carry
    no key.
    """

    name: str
    family: ProductFamily | None
    tier: LicenseTier
    default_key: str | None = None

    @property
    def requires_key(self) -> bool:
        return self.tier is LicenseTier.VOLUME


PRODUCT_CATALOG: Mapping[ProductId, ProductInfo] = {
    ProductId.O365_PROPLUS_RETAIL: ProductInfo(
        name="Microsoft 365 Apps for enterprise",
        family=None,
        tier=LicenseTier.RETAIL_SUBSCRIPTION,
    ),
    ProductId.VISIO_STD_X_VOLUME: ProductInfo(
        name="Visio Standard (Volume)",
        family=ProductFamily.VISIO,
        tier=LicenseTier.VOLUME,
        default_key="7WHWN-4T7MP-G96JF-G33KR-W8GF4",
    ),
    ProductId.VISIO_PRO_X_VOLUME: ProductInfo(
        name="Visio Professional (Volume)",
        family=ProductFamily.VISIO,
        tier=LicenseTier.VOLUME,
        default_key="PD3PC-RHNGV-FXJ29-8JK7D-RJRJK",
    ),
    ProductId.VISIO_PRO_RETAIL: ProductInfo(
        name="Visio Plan 2 (Subscription)",
        family=ProductFamily.VISIO,
        tier=LicenseTier.RETAIL_SUBSCRIPTION,
    ),
    ProductId.PROJECT_STD_X_VOLUME: ProductInfo(
        name="Project Standard (Volume)",
        family=ProductFamily.PROJECT,
        tier=LicenseTier.VOLUME,
        default_key="GNFHQ-F6YQM-KQDGJ-327XX-KQBVC",
    ),
    ProductId.PROJECT_PRO_X_VOLUME: ProductInfo(
        name="Project Professional (Volume)",
        family=ProductFamily.PROJECT,
        tier=LicenseTier.VOLUME,
        default_key="YG9NW-3K39V-2T3HJ-93F3Q-G83KT",
    ),
    ProductId.PROJECT_PRO_RETAIL: ProductInfo(
        name="Project Plan 3 (Subscription)",
        family=ProductFamily.PROJECT,
        tier=LicenseTier.RETAIL_SUBSCRIPTION,
    ),
}


# ---------------------------------------------------------------------------
# Platform and channel
# ---------------------------------------------------------------------------


class Architecture(Enum):
    """!
    @brief Office bitness as recorded in the Click-to-Run ``Platform`` value.
    """

    X86 = "x86"
    X64 = "x64"

    @property
    def client_edition(self) -> str:
        """!
        @brief Value for the ODT ``OfficeClientEdition`` attribute.
        """

        return "32" if self is Architecture.X86 else "64"

    @classmethod
    def parse(cls, value: str) -> Architecture:
        """!
        @brief Resolve ``x86``/``x64``/``32``/``64``/``amd64`` spellings.
        @throws ValueError When the spelling is not recognised.
        """

        resolved = PLATFORM_ALIASES.get(str(value).strip().lower())
        if resolved is None:
            raise ValueError(f"Unknown architecture '{value}'")
        return resolved


PLATFORM_ALIASES: Dict[str, Architecture] = {
    "x86": Architecture.X86,
    "32": Architecture.X86,
    "x64": Architecture.X64,
    "64": Architecture.X64,
    "amd64": Architecture.X64,
}


class UpdateChannel(Enum):
    """!
    @brief Click-to-Run update channels, valued by their ODT ``Channel`` name.
    """

    CURRENT = "Current"
    CURRENT_PREVIEW = "CurrentPreview"
    MONTHLY_ENTERPRISE = "MonthlyEnterprise"
    SEMI_ANNUAL = "SemiAnnual"
    SEMI_ANNUAL_PREVIEW = "SemiAnnualPreview"
    BETA = "BetaChannel"

    @property
    def cdn_url(self) -> str:
        return CHANNEL_CDN_URLS[self]

    @classmethod
    def parse(cls, value: str) -> UpdateChannel:
        """!
        @brief Resolve a channel name, including the older ODT aliases.
        @throws ValueError When the name is not recognised.
        """

        candidate = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == candidate:
                return member
        alias = CHANNEL_ALIASES.get(candidate)
        if alias is not None:
            return alias
        available = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown update channel '{value}'. Available: {available}")


_CDN_ROOT = "http://officecdn.microsoft.com/pr/"

CHANNEL_CDN_URLS: Mapping[UpdateChannel, str] = {
    UpdateChannel.CURRENT: _CDN_ROOT + "492350f6-3a04-4b59-8b34-4c547755c2a0",
    UpdateChannel.CURRENT_PREVIEW: _CDN_ROOT + "64256afe-f5d9-4f86-8936-8840a6a4f5be",
    UpdateChannel.MONTHLY_ENTERPRISE: _CDN_ROOT + "55336b82-a18d-4dd6-b5f6-9e5095c314a6",
    UpdateChannel.SEMI_ANNUAL: _CDN_ROOT + "7ffbc6bf-bc32-4f92-8982-f9dd17fd3114",
    UpdateChannel.SEMI_ANNUAL_PREVIEW: _CDN_ROOT + "b8f9b850-328d-4355-9145-c59439a0c4cf",
    UpdateChannel.BETA: _CDN_ROOT + "5440fd1f-7ecb-4221-8110-14e4edeeb5d0",
}

CHANNEL_ALIASES: Dict[str, UpdateChannel] = {
    "monthly": UpdateChannel.CURRENT,
    "broad": UpdateChannel.SEMI_ANNUAL,
    "deferred": UpdateChannel.SEMI_ANNUAL,
    "targeted": UpdateChannel.SEMI_ANNUAL_PREVIEW,
    "firstreleasedeferred": UpdateChannel.SEMI_ANNUAL_PREVIEW,
    "firstreleasecurrent": UpdateChannel.CURRENT_PREVIEW,
    "insiderfast": UpdateChannel.BETA,
}

DEFAULT_CHANNEL = UpdateChannel.MONTHLY_ENTERPRISE
DEFAULT_ARCHITECTURE = Architecture.X64
DEFAULT_LANGUAGES: Tuple[str, ...] = ("MatchOS",)


def normalise_cdn_url(url: str | None) -> str:
    """!
    @brief Normalise a CDN base URL for comparison.
    """

    if not url:
        return ""
    return str(url).strip().rstrip("/").lower()


# ---------------------------------------------------------------------------
# Legacy MSI suites
# ---------------------------------------------------------------------------


class LegacyVersion(Enum):
    """!
    @brief MSI-based Office suites removed before a Click-to-Run install.
    @details Members are valued by release year so sorting by ``value`` yields
    the removal order.
    """

    OFFICE_2003 = 2003
    OFFICE_2007 = 2007
    OFFICE_2010 = 2010
    OFFICE_2013 = 2013
    OFFICE_2016 = 2016

    @property
    def label(self) -> str:
        return LEGACY_LABELS[self]

    @property
    def script(self) -> str:
        return LEGACY_REMOVAL_SCRIPTS[self]


LEGACY_LABELS: Mapping[LegacyVersion, str] = {
    LegacyVersion.OFFICE_2003: "Microsoft Office Professional Edition 2003",
    LegacyVersion.OFFICE_2007: "Microsoft Office Professional Plus 2007",
    LegacyVersion.OFFICE_2010: "Microsoft Office Professional Plus 2010",
    LegacyVersion.OFFICE_2013: "Microsoft Office Professional Plus 2013",
    LegacyVersion.OFFICE_2016: "Microsoft Office Professional Plus 2016",
}

LEGACY_REMOVAL_SCRIPTS: Mapping[LegacyVersion, str] = {
    LegacyVersion.OFFICE_2003: "OffScrub03.vbs",
    LegacyVersion.OFFICE_2007: "OffScrub07.vbs",
    LegacyVersion.OFFICE_2010: "OffScrub10.vbs",
    LegacyVersion.OFFICE_2013: "OffScrub_O15msi.vbs",
    LegacyVersion.OFFICE_2016: "OffScrub_O16msi.vbs",
}

C2R_REMOVAL_SCRIPT = "OffScrubc2r.vbs"
SETUP_EXECUTABLE = "setup.exe"
SCRIPT_HOST = "cscript.exe"
OFFSCRUB_ARGUMENTS: Tuple[str, ...] = ("ALL", "/Quiet", "/NoCancel", "/Force", "/OSE")
"""!
@brief Arguments passed to every OffScrub script after the script path.
"""


# ---------------------------------------------------------------------------
# Registry locations
# ---------------------------------------------------------------------------

C2R_CONFIGURATION_KEY: Tuple[int, str] = (
    HKLM,
    r"SOFTWARE\Microsoft\Office\ClickToRun\Configuration",
)
"""!
@brief Key holding ``Platform``, ``CDNBaseUrl`` and ``ProductReleaseIds``.
"""

UNINSTALL_ROOTS: Tuple[Tuple[int, str], ...] = (
    (HKLM, r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall"),
    (HKLM, r"SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall"),
)


# ---------------------------------------------------------------------------
# Runtime defaults
# ---------------------------------------------------------------------------

OFFICE_PROCESSES: Tuple[str, ...] = (
    "winword.exe",
    "excel.exe",
    "outlook.exe",
    "powerpnt.exe",
    "msaccess.exe",
    "mspub.exe",
    "onenote.exe",
    "visio.exe",
    "winproj.exe",
    "lync.exe",
    "groove.exe",
)

DEFAULT_REQUIRED_DISK_SPACE_MB = 4096


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS = 0
EXIT_REBOOT_REQUIRED = 3010
EXIT_USER_CANCELLED = 1602
EXIT_GENERIC_FAILURE = 60001
EXIT_BOOTSTRAP_FAILURE = 60008
EXIT_INSUFFICIENT_DISK_SPACE = 69000
EXIT_FILE_NOT_FOUND = 2

SUCCESS_EXIT_CODES = frozenset({EXIT_SUCCESS, EXIT_REBOOT_REQUIRED})


__all__ = [
    "Architecture",
    "C2R_CONFIGURATION_KEY",
    "C2R_REMOVAL_SCRIPT",
    "CHANNEL_ALIASES",
    "CHANNEL_CDN_URLS",
    "DEFAULT_ARCHITECTURE",
    "DEFAULT_CHANNEL",
    "DEFAULT_LANGUAGES",
    "DEFAULT_REQUIRED_DISK_SPACE_MB",
    "EXIT_BOOTSTRAP_FAILURE",
    "EXIT_FILE_NOT_FOUND",
    "EXIT_GENERIC_FAILURE",
    "EXIT_INSUFFICIENT_DISK_SPACE",
    "EXIT_REBOOT_REQUIRED",
    "EXIT_SUCCESS",
    "EXIT_USER_CANCELLED",
    "HKLM",
    "LEGACY_LABELS",
    "LEGACY_REMOVAL_SCRIPTS",
    "LegacyVersion",
    "LicenseTier",
    "OFFICE_PROCESSES",
    "OFFSCRUB_ARGUMENTS",
    "PLATFORM_ALIASES",
    "PRODUCT_CATALOG",
    "ProductFamily",
    "ProductId",
    "ProductInfo",
    "SCRIPT_HOST",
    "SETUP_EXECUTABLE",
    "SUCCESS_EXIT_CODES",
    "UNINSTALL_ROOTS",
    "UpdateChannel",
    "normalise_cdn_url",
]
