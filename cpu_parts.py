"""
cpu_parts.py - CPU implementer and part-number lookup tables

Resolves the numeric "CPU implementer" / "CPU part" codes reported by ARM
kernels into vendor and model names. Resolution is two-level: the
implementer selects a vendor part table, the part code selects a name within
it. Unknown codes never fail; they resolve to "generic" (parts) or to a
numeric "Implementer(<n>)" rendering (vendors).
"""

from types import MappingProxyType
from typing import Mapping

GENERIC = "generic"


# ============================================================================
# Implementers
# ============================================================================

class Implementer(int):
    """
    CPU implementer code.

    Codes are ASCII letters in practice ('A' for ARM Ltd). Any integer is a
    valid Implementer; str() renders the vendor name when it is known.
    """

    def __str__(self) -> str:
        return implementer_name(self)

    def __repr__(self) -> str:
        return f"Implementer({int(self):#x})"


ARM_LTD = Implementer(ord("A"))
BROADCOM = Implementer(ord("B"))
CAVIUM = Implementer(ord("C"))
FUJITSU = Implementer(ord("F"))
HISILICON = Implementer(ord("H"))
NVIDIA = Implementer(ord("N"))
QUALCOMM = Implementer(ord("Q"))
SAMSUNG = Implementer(ord("S"))
APPLE = Implementer(ord("a"))
INTEL = Implementer(ord("i"))  # Intel ARM parts

IMPLEMENTER_NAMES: Mapping[int, str] = MappingProxyType({
    ARM_LTD: "ARM Ltd",
    BROADCOM: "Broadcom",
    CAVIUM: "Cavium",
    FUJITSU: "Fujitsu Ltd",
    HISILICON: "HiSilicon Technologies Inc",
    NVIDIA: "NVIDIA Corporation",
    QUALCOMM: "Qualcomm Technologies Inc",
    SAMSUNG: "Samsung Technologies Inc",
    APPLE: "Apple Inc",
    INTEL: "Intel ARM parts",
})


def implementer_name(code: int) -> str:
    """
    Render an implementer code as text.

    This is the rendering every serializer goes through, so that reports
    carry "ARM Ltd" rather than 65.
    """
    name = IMPLEMENTER_NAMES.get(code)
    if name is None:
        return f"Implementer({int(code)})"
    return name


# ============================================================================
# Part Codes
# ============================================================================

# ARM
ARM926EJS = 0x926
ARM11_MPCORE = 0xb02
ARM1136JS = 0xb36
ARM1156T2S = 0xb56
ARM1176JZS = 0xb76
CORTEX_A8 = 0xc08
CORTEX_A9 = 0xc09
CORTEX_A15 = 0xc0f
CORTEX_M0 = 0xc20
CORTEX_M3 = 0xc23
CORTEX_M4 = 0xc24
CORTEX_M55 = 0xd22
CORTEX_A34 = 0xd02
CORTEX_A35 = 0xd04
CORTEX_A53 = 0xd03
CORTEX_A55 = 0xd05
CORTEX_A57 = 0xd07
CORTEX_A72 = 0xd08
CORTEX_A73 = 0xd09
CORTEX_A75 = 0xd0a
CORTEX_A76 = 0xd0b
CORTEX_A77 = 0xd0d
CORTEX_A78 = 0xd41
CORTEX_X1 = 0xd44
CORTEX_X1C = 0xd4c
NEOVERSE_N1 = 0xd0c
NEOVERSE_N2 = 0xd49
NEOVERSE_V1 = 0xd40
FIRESTORM = 0x23  # M1 performance core
ICESTORM = 0x22   # M1 efficiency core

# Broadcom/Cavium
THUNDERX2_T99 = 0x516
THUNDERX2_T99_2 = 0xaf
THUNDERX_T88 = 0xa1

# Fujitsu
A64FX = 0x001

# NVIDIA
CARMEL = 0x004

# HiSilicon
TSV110 = 0xd01

# Qualcomm
KRAIT = 0x06f
KRYO = 0x201
KRYO_2 = 0x205
KRYO_3 = 0x211
KRYO_2XX_GOLD = 0x800
KRYO_2XX_SILVER = 0x801
KRYO_3XX_GOLD = 0x802
KRYO_3XX_SILVER = 0x803
KRYO_4XX_GOLD = 0x804
KRYO_4XX_SILVER = 0x805
FALKOR = 0xc00
SAPHIRA = 0xc01


# ============================================================================
# Vendor Part Tables
# ============================================================================

ARM_PARTS: Mapping[int, str] = MappingProxyType({
    ARM926EJS: "ARM926EJ-S",
    ARM11_MPCORE: "ARM11 MPCore",
    ARM1136JS: "ARM1136J-S",
    ARM1156T2S: "ARM1156T2-S",
    ARM1176JZS: "ARM1176JZ-S",
    CORTEX_A8: "Cortex-A8",
    CORTEX_A9: "Cortex-A9",
    CORTEX_A15: "Cortex-A15",
    CORTEX_M0: "Cortex-M0",
    CORTEX_M3: "Cortex-M3",
    CORTEX_M4: "Cortex-M4",
    CORTEX_M55: "Cortex-M55",
    CORTEX_A34: "Cortex-A34",
    CORTEX_A35: "Cortex-A35",
    CORTEX_A53: "Cortex-A53",
    CORTEX_A55: "Cortex-A55",
    CORTEX_A57: "Cortex-A57",
    CORTEX_A72: "Cortex-A72",
    CORTEX_A73: "Cortex-A73",
    CORTEX_A75: "Cortex-A75",
    CORTEX_A76: "Cortex-A76",
    CORTEX_A77: "Cortex-A77",
    CORTEX_A78: "Cortex-A78",
    CORTEX_X1: "Cortex-X1",
    CORTEX_X1C: "Cortex-X1C",
    NEOVERSE_N1: "neoverse-n1",
    NEOVERSE_N2: "neoverse-n2",
    NEOVERSE_V1: "neoverse-v1",
    FIRESTORM: "M1 Firestorm",
    ICESTORM: "M1 Icestorm",
})

# Shared by Broadcom and Cavium
BROADCOM_PARTS: Mapping[int, str] = MappingProxyType({
    THUNDERX2_T99: "ThunderX2T99",
    THUNDERX2_T99_2: "ThunderX2T99",
    THUNDERX_T88: "ThunderXT88",
})

FUJITSU_PARTS: Mapping[int, str] = MappingProxyType({
    A64FX: "A64FX",
})

NVIDIA_PARTS: Mapping[int, str] = MappingProxyType({
    CARMEL: "Carmel",
})

HISILICON_PARTS: Mapping[int, str] = MappingProxyType({
    TSV110: "TSV110",
})

# Several Kryo generations share a display name; the gold/silver clusters
# are reported as the Cortex core they are derived from.
QUALCOMM_PARTS: Mapping[int, str] = MappingProxyType({
    KRAIT: "Krait",
    KRYO: "Kryo",
    KRYO_2: "Kryo",
    KRYO_3: "Kryo",
    KRYO_2XX_GOLD: "Cortex-A73",
    KRYO_2XX_SILVER: "Cortex-A73",
    KRYO_3XX_GOLD: "Cortex-A75",
    KRYO_3XX_SILVER: "Cortex-A75",
    KRYO_4XX_GOLD: "Cortex-A76",
    KRYO_4XX_SILVER: "Cortex-A76",
    FALKOR: "Falkor",
    SAPHIRA: "Saphira",
})

SAMSUNG_PARTS: Mapping[int, str] = MappingProxyType({})

VENDOR_PARTS: Mapping[int, Mapping[int, str]] = MappingProxyType({
    ARM_LTD: ARM_PARTS,
    BROADCOM: BROADCOM_PARTS,
    CAVIUM: BROADCOM_PARTS,
    FUJITSU: FUJITSU_PARTS,
    NVIDIA: NVIDIA_PARTS,
    HISILICON: HISILICON_PARTS,
    QUALCOMM: QUALCOMM_PARTS,
    SAMSUNG: SAMSUNG_PARTS,
})


def part_name(impl: int, part: int) -> str:
    """
    Resolve an (implementer, part) pair to a model name.

    Args:
        impl: Implementer code, e.g. 0x41 for ARM Ltd
        part: Vendor-scoped part code, e.g. 0xd08

    Returns:
        The model name ("Cortex-A72"), or "generic" when either code is
        not in the tables.
    """
    return VENDOR_PARTS.get(impl, {}).get(part, GENERIC)
