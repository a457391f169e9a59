"""
cpu_models.py - Report data model

Pydantic models for a host CPU report. Every field has an internal
(attribute) name and a stable external (alias) name used on serialization.
Unset numbers are 0 and unset strings/lists are empty; the model does not
distinguish "absent" from "zero", matching the source data.
"""

import json
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from cpu_parts import Implementer, implementer_name, part_name

# Serialized even when zero/empty
ALWAYS_SERIALIZED = ("processor", "micro_arch")


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())


# ============================================================================
# Composite Fields
# ============================================================================

class Cache(_Model):
    """Cache geometry, sizes in bytes."""
    inst: int = Field(0, alias="instruction")
    l1: int = Field(0, alias="l1")
    l2: int = Field(0, alias="l2")
    l3: int = Field(0, alias="l3")
    alignment: int = Field(0, alias="alignment")
    flush: int = Field(0, alias="flush")  # CLFLUSH line size


class AddrSizes(_Model):
    phys: int = Field(0, alias="physical_bits")
    virt: int = Field(0, alias="virtual_bits")


class TLB(_Model):
    n: int = Field(0, alias="num_pages")
    page_size: int = Field(0, alias="page_size")


# ============================================================================
# CPU Record
# ============================================================================

class CPU(_Model):
    """
    A single logical processor.

    On Linux this is one record of /proc/cpuinfo; on macOS it is built from
    sysctl values. The comment after each field names the /proc/cpuinfo
    key(s) it is read from.
    """

    # General
    proc: int = Field(0, alias="processor")  # processor
    bogomips: float = Field(0.0, alias="bogomips")  # BogoMIPS, bogomips
    features: List[str] = Field(default_factory=list, alias="features")  # Features, flags
    rev: int = Field(0, alias="revision")  # CPU revision, stepping
    model_name: str = Field("", alias="model_name")  # model name
    micro_arch: str = Field("", alias="micro_arch")

    # ARM
    impl: int = Field(0, alias="implementer")  # CPU implementer
    arch: int = Field(0, alias="arch")  # CPU architecture
    variant: int = Field(0, alias="variant")  # CPU variant
    part: int = Field(0, alias="part_number")  # CPU part

    # Intel/AMD (x86)
    vendor_id: str = Field("", alias="vendor_id")  # vendor_id
    family: int = Field(0, alias="family")  # cpu family
    model: int = Field(0, alias="model_number")  # model
    microcode: int = Field(0, alias="microcode_version")  # microcode
    freq: float = Field(0.0, alias="frequency_mhz")  # cpu MHz
    cache: Cache = Field(default_factory=Cache, alias="cache")
    phys_id: int = Field(0, alias="physical_id")  # physical id
    siblings: int = Field(0, alias="siblings")  # siblings
    core_id: int = Field(0, alias="core_id")  # core id
    cores: int = Field(0, alias="num_cores")  # cpu cores
    apic_id: int = Field(0, alias="apic_id")  # apicid
    init_apic_id: int = Field(0, alias="initial_apic_id")  # initial apicid
    fpu: bool = Field(False, alias="fpu")  # fpu
    fpu_exceptions: bool = Field(False, alias="fpu_exceptions")  # fpu_exception
    cpuid_level: int = Field(0, alias="cpuid_level")  # cpuid level
    wp: bool = Field(False, alias="write_protection")  # wp
    bugs: List[str] = Field(default_factory=list, alias="bugs")  # bugs
    addr_sizes: AddrSizes = Field(default_factory=AddrSizes, alias="address_sizes")  # address sizes
    power_mgmt: str = Field("", alias="power_management")  # power management

    # AMD
    tlb: TLB = Field(default_factory=TLB, alias="tlb")  # TLB size

    @field_serializer("impl")
    def _serialize_impl(self, impl: int) -> str:
        return implementer_name(impl) if impl else ""

    def name(self) -> str:
        """Model name resolved from the implementer/part tables."""
        return part_name(self.impl, self.part)

    def __str__(self) -> str:
        return f"{Implementer(self.impl)} {self.name()}"


class Pair(_Model):
    """A miscellaneous key/value reported by the host."""
    key: str
    value: str


# ============================================================================
# Report
# ============================================================================

class Report(_Model):
    """
    Host CPU report.

    cpus is sorted by processor number and misc by key once normalize() has
    run, so two reports of the same host compare equal.
    """

    cpus: List[CPU] = Field(default_factory=list, alias="cpus")
    misc: List[Pair] = Field(default_factory=list, alias="misc")

    def add_cpu(self, cpu: CPU) -> None:
        self.cpus.append(cpu)

    def add_pair(self, key: str, value: str) -> None:
        self.misc.append(Pair(key=key, value=value))

    def normalize(self) -> "Report":
        """Stable-sort cpus by processor number and misc by key."""
        self.cpus.sort(key=lambda c: c.proc)
        self.misc.sort(key=lambda p: p.key)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize using external field names, omitting zero/empty fields.

        The implementer is rendered as its vendor name.
        """
        return {
            "cpus": [_compact(c.model_dump(by_alias=True), ALWAYS_SERIALIZED)
                     for c in self.cpus],
            "misc": [p.model_dump() for p in self.misc],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def _compact(data: Dict[str, Any], keep=()) -> Dict[str, Any]:
    """Drop zero/empty values, recursing into nested composite fields."""
    out = {}
    for key, value in data.items():
        if isinstance(value, dict):
            value = _compact(value)
        if value or key in keep:
            out[key] = value
    return out
