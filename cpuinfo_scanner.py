"""
cpuinfo_scanner.py - /proc/cpuinfo record scanner

Turns the text of /proc/cpuinfo into a Report. Input looks like

    processor	: 5
    BogoMIPS	: 48.00
    Features	: fp asimd evtstrm aes pmull sha1 sha2 crc32 cpuid
    CPU implementer	: 0x41
    CPU architecture: 8
    CPU variant	: 0x0
    CPU part	: 0xd08
    CPU revision	: 2

with one blank-line-terminated record per logical processor. Keys found in
FIELD_SETTERS fill a CPU field; any other key is kept verbatim in the
report's misc pairs.
"""

import logging
from typing import Callable, Dict, Optional, Union

from cpu_models import CPU, Report
from cpu_parsers import (
    parse_addr_sizes,
    parse_bool,
    parse_float,
    parse_int,
    parse_size,
    parse_tlb,
    split_line,
)

logger = logging.getLogger(__name__)

Setter = Callable[[CPU, str], None]


# ============================================================================
# Field Setters
# ============================================================================

def _field(attr: str, decode: Optional[Callable[[str], object]] = None) -> Setter:
    """Build a setter that decodes a value into a CPU attribute."""
    def setter(cpu: CPU, value: str) -> None:
        setattr(cpu, attr, decode(value) if decode else value)
    return setter


def _cache_field(attr: str, decode: Callable[[str], int]) -> Setter:
    def setter(cpu: CPU, value: str) -> None:
        setattr(cpu.cache, attr, decode(value))
    return setter


def _words(value: str) -> list:
    return value.split()


def _set_addr_sizes(cpu: CPU, value: str) -> None:
    cpu.addr_sizes.phys, cpu.addr_sizes.virt = parse_addr_sizes(value)


def _set_tlb(cpu: CPU, value: str) -> None:
    cpu.tlb.n, cpu.tlb.page_size = parse_tlb(value)


# Exact, case-sensitive /proc/cpuinfo keys. ARM and x86 kernels spell some
# fields differently, so several keys share a setter.
FIELD_SETTERS: Dict[str, Setter] = {
    "processor": _field("proc", parse_int),
    "BogoMIPS": _field("bogomips", parse_float),
    "bogomips": _field("bogomips", parse_float),
    "Features": _field("features", _words),
    "flags": _field("features", _words),
    "bugs": _field("bugs", _words),
    "CPU revision": _field("rev", parse_int),
    "stepping": _field("rev", parse_int),
    "model name": _field("model_name"),

    # ARM
    "CPU implementer": _field("impl", parse_int),
    "CPU architecture": _field("arch", parse_int),
    "CPU variant": _field("variant", parse_int),
    "CPU part": _field("part", parse_int),

    # x86
    "vendor_id": _field("vendor_id"),
    "cpu family": _field("family", parse_int),
    "model": _field("model", parse_int),
    "microcode": _field("microcode", parse_int),
    "cpu MHz": _field("freq", parse_float),
    "physical id": _field("phys_id", parse_int),
    "siblings": _field("siblings", parse_int),
    "core id": _field("core_id", parse_int),
    "cpu cores": _field("cores", parse_int),
    "apicid": _field("apic_id", parse_int),
    "initial apicid": _field("init_apic_id", parse_int),
    "fpu": _field("fpu", parse_bool),
    "fpu_exception": _field("fpu_exceptions", parse_bool),
    "cpuid level": _field("cpuid_level", parse_int),
    "wp": _field("wp", parse_bool),
    "power management": _field("power_mgmt"),
    "address sizes": _set_addr_sizes,

    # Cache
    "cache size": _cache_field("l2", parse_size),
    "clflush size": _cache_field("flush", parse_int),
    "cache_alignment": _cache_field("alignment", parse_int),

    # AMD
    "TLB size": _set_tlb,
}


# ============================================================================
# Scanner
# ============================================================================

def scan_cpuinfo(
    buf: Union[bytes, str],
    report: Optional[Report] = None,
    flush_trailing: bool = False
) -> Report:
    """
    Scan /proc/cpuinfo text into a Report.

    A record is appended to the report when a line without a key (normally
    a blank line) follows it. A record at the very end of the input with no
    blank line after it is dropped unless flush_trailing is set.

    Args:
        buf: Raw file contents; bytes are decoded as UTF-8
        report: Report to append to (a new one by default)
        flush_trailing: Keep a final record that lacks a terminating blank line

    Returns:
        The report, with cpus sorted by processor and misc sorted by key
    """
    if report is None:
        report = Report()
    if isinstance(buf, bytes):
        buf = buf.decode("utf-8", errors="replace")

    cpu = CPU()
    pending = False

    # Only "\n" ends a line; str.splitlines() would also break on form feeds
    # and Unicode separators inside values.
    lines = buf.split("\n")
    if lines[-1] == "":
        lines.pop()

    for line in lines:
        if line.endswith("\r"):
            line = line[:-1]
        key, value = split_line(line)
        if not key:
            # Runs of separators would otherwise emit empty records
            if pending:
                report.add_cpu(cpu)
            cpu = CPU()
            pending = False
            continue

        setter = FIELD_SETTERS.get(key)
        if setter is None:
            logger.debug(f"Unrecognized cpuinfo key {key!r}, keeping as misc")
            report.add_pair(key, value)
            continue

        setter(cpu, value)
        pending = True

    if pending:
        if flush_trailing:
            report.add_cpu(cpu)
        else:
            logger.debug(f"Dropping processor {cpu.proc}: no blank line after its record")

    return report.normalize()
