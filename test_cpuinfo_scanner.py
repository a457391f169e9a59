"""
test_cpuinfo_scanner.py - Test suite for the /proc/cpuinfo scanner

Tests:
- Record splitting and processor ordering
- Misc (unrecognized) field preservation
- Composite field decoding through the scanner
- Trailing record handling and newline-only line splitting
- Captured /proc/cpuinfo files from real hosts (testdata/)
- Report serialization

Usage:
    python test_cpuinfo_scanner.py
"""

import json
import sys
from pathlib import Path

# Add current directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

import cpu_parts
from cpu_models import CPU, Pair, Report
from cpuinfo_scanner import FIELD_SETTERS, scan_cpuinfo

TESTDATA = Path(__file__).parent / "testdata"


def load_fixture(name: str) -> Report:
    return scan_cpuinfo((TESTDATA / name).read_bytes())


# ============================================================================
# Scanner Behavior
# ============================================================================

def test_arm_record():
    """Decode a single ARM record and resolve its part name"""
    print("\n=== Test: ARM Record ===")

    report = scan_cpuinfo(
        "processor: 0\n"
        "CPU implementer: 0x41\n"
        "CPU part: 0xd08\n"
        "CPU architecture: 8\n"
        "\n"
    )

    assert len(report.cpus) == 1
    cpu = report.cpus[0]
    assert cpu.proc == 0
    assert cpu.impl == cpu_parts.ARM_LTD
    assert cpu.part == cpu_parts.CORTEX_A72
    assert cpu.arch == 8
    assert cpu.name() == "Cortex-A72"
    assert str(cpu) == "ARM Ltd Cortex-A72"

    print("✓ ARM record passed")


def test_records_sorted_by_processor():
    """Records arriving out of order are sorted by processor number"""
    print("\n=== Test: Processor Ordering ===")

    report = scan_cpuinfo(
        "processor\t: 1\n"
        "BogoMIPS\t: 48.00\n"
        "\n"
        "processor\t: 0\n"
        "bogomips\t: 50.00\n"
        "\n"
    )

    assert [c.proc for c in report.cpus] == [0, 1]
    assert report.cpus[0].bogomips == 50.0
    assert report.cpus[1].bogomips == 48.0

    print("✓ Processor ordering passed")


def test_unknown_keys_kept_as_misc():
    """Unrecognized keys are preserved verbatim and sorted by key"""
    print("\n=== Test: Misc Fields ===")

    report = scan_cpuinfo(
        "Serial\t\t: 10000000771c4af4\n"
        "Hardware\t: BCM2711\n"
        "Revision\t: c03111\n"
    )

    assert report.cpus == []
    assert report.misc == [
        Pair(key="Hardware", value="BCM2711"),
        Pair(key="Revision", value="c03111"),
        Pair(key="Serial", value="10000000771c4af4"),
    ]

    print("✓ Misc fields passed")


def test_keys_are_case_sensitive():
    """Only the exact spellings in the key table are recognized"""
    print("\n=== Test: Case-sensitive Keys ===")

    report = scan_cpuinfo("processor: 2\nCPU Part: 0xd08\nBOGOMIPS: 1.0\n\n")

    assert report.cpus[0].part == 0
    assert report.cpus[0].bogomips == 0.0
    assert [p.key for p in report.misc] == ["BOGOMIPS", "CPU Part"]

    print("✓ Case-sensitive keys passed")


def test_composite_fields():
    """Cache, TLB and address-size values decode through the scanner"""
    print("\n=== Test: Composite Fields ===")

    report = scan_cpuinfo(
        "processor\t: 0\n"
        "cache size\t: 16384 KB\n"
        "TLB size\t: 1024 4K pages\n"
        "address sizes\t: 40 bits physical, 48 bits virtual\n"
        "clflush size\t: 64\n"
        "cache_alignment\t: 64\n"
        "\n"
    )

    cpu = report.cpus[0]
    assert cpu.cache.l2 == 16384 * 1024
    assert cpu.cache.flush == 64
    assert cpu.cache.alignment == 64
    assert (cpu.tlb.n, cpu.tlb.page_size) == (1024, 4096)
    assert (cpu.addr_sizes.phys, cpu.addr_sizes.virt) == (40, 48)

    print("✓ Composite fields passed")


def test_malformed_values_default_to_zero():
    """Bad field values never raise; they leave zero/empty values"""
    print("\n=== Test: Malformed Values ===")

    report = scan_cpuinfo(
        "processor\t: zero\n"
        "cpu MHz\t\t: fast\n"
        "cache size\t: lots\n"
        "TLB size\t: many pages\n"
        "address sizes\t: 40 bits physical\n"
        "fpu\t\t: maybe\n"
        "\n"
    )

    assert report.cpus == [CPU()]

    print("✓ Malformed values passed")


def test_records_do_not_share_state():
    """Each record starts from an empty CPU"""
    print("\n=== Test: Fresh Records ===")

    report = scan_cpuinfo(
        "processor: 0\ncache size: 512 KB\nflags: fpu vme\n\n"
        "processor: 1\n\n"
    )

    first, second = report.cpus
    assert first.cache.l2 == 512 * 1024
    assert first.features == ["fpu", "vme"]
    assert second.cache.l2 == 0
    assert second.features == []

    print("✓ Fresh records passed")


def test_trailing_record():
    """A record without a final blank line is dropped unless flushed"""
    print("\n=== Test: Trailing Record ===")

    text = "processor: 0\n\nprocessor: 1\nCPU part: 0xd03"

    assert [c.proc for c in scan_cpuinfo(text).cpus] == [0]
    flushed = scan_cpuinfo(text, flush_trailing=True)
    assert [c.proc for c in flushed.cpus] == [0, 1]
    assert flushed.cpus[1].part == 0xd03

    print("✓ Trailing record passed")


def test_repeated_separators():
    """Blank-line runs and empty input produce no phantom records"""
    print("\n=== Test: Repeated Separators ===")

    assert scan_cpuinfo(b"") == Report()
    assert scan_cpuinfo("\n\n\n").cpus == []

    report = scan_cpuinfo("\n\nprocessor: 3\n\n\n\nHardware: X\n\n")
    assert [c.proc for c in report.cpus] == [3]
    assert report.misc == [Pair(key="Hardware", value="X")]

    print("✓ Repeated separators passed")


def test_bytes_and_crlf_input():
    """Raw bytes and CRLF line endings are accepted"""
    print("\n=== Test: Bytes Input ===")

    report = scan_cpuinfo(b"processor\t: 4\r\nmodel name\t: Caf\xc3\xa9 CPU\r\n\r\n")

    assert report.cpus[0].proc == 4
    assert report.cpus[0].model_name == "Café CPU"

    print("✓ Bytes input passed")


def test_only_newlines_split_lines():
    """Form feeds and Unicode separators inside values do not split records"""
    print("\n=== Test: Newline-only Line Splitting ===")

    for sep in ("\x0b", "\x0c", "\x1c", "\x1e", "\u0085", "\u2028", "\u2029"):
        report = scan_cpuinfo(f"processor: 0\nmodel name: A{sep}B\nCPU part: 0xd08\n\n")
        assert len(report.cpus) == 1, f"{sep!r} split the record"
        assert report.cpus[0].model_name == f"A{sep}B"
        assert report.cpus[0].part == 0xd08
        assert report.misc == []

    # A final newline does not act as a record separator
    assert scan_cpuinfo("processor: 0\nCPU part: 0xd03\n").cpus == []

    print("✓ Newline-only line splitting passed")


def test_key_table_synonyms():
    """Synonym keys share a setter target"""
    print("\n=== Test: Key Synonyms ===")

    for a, b in (("BogoMIPS", "bogomips"), ("CPU revision", "stepping"), ("Features", "flags")):
        assert a in FIELD_SETTERS and b in FIELD_SETTERS
        ca, cb = CPU(), CPU()
        FIELD_SETTERS[a](ca, "7")
        FIELD_SETTERS[b](cb, "7")
        assert ca == cb, f"{a!r} and {b!r} should set the same field"

    print("✓ Key synonyms passed")


# ============================================================================
# Captured Hosts
# ============================================================================

def test_raspberry_pi_4b():
    """Raspberry Pi 4B running a 32-bit kernel"""
    print("\n=== Test: Raspberry Pi 4B ===")

    report = load_fixture("raspberry_pi_4b")
    features = "half thumb fastmult vfp edsp neon vfpv3 tls vfpv4 idiva idivt vfpd32 lpae evtstrm crc32".split(" ")

    assert report.cpus == [
        CPU(proc=i, bogomips=108, features=features, impl=cpu_parts.ARM_LTD, arch=7,
            part=cpu_parts.CORTEX_A72, rev=3, model_name="ARMv7 Processor rev 3 (v7l)")
        for i in range(4)
    ]
    assert report.misc == [
        Pair(key="Hardware", value="BCM2711"),
        Pair(key="Model", value="Raspberry Pi 4 Model B Rev 1.1"),
        Pair(key="Revision", value="c03111"),
        Pair(key="Serial", value="10000000771c4af4"),
    ]

    print("✓ Raspberry Pi 4B passed")


def test_rockpro64():
    """RockPro64 big.LITTLE: four Cortex-A53 and two Cortex-A72"""
    print("\n=== Test: RockPro64 ===")

    report = load_fixture("rockpro64")

    assert len(report.cpus) == 6
    assert [c.name() for c in report.cpus] == ["Cortex-A53"] * 4 + ["Cortex-A72"] * 2
    assert [c.rev for c in report.cpus] == [4, 4, 4, 4, 2, 2]
    assert all(c.bogomips == 48 and c.arch == 8 for c in report.cpus)
    assert report.misc == []

    print("✓ RockPro64 passed")


def test_amd_epyc():
    """AMD EPYC virtual machine with TLB and address size fields"""
    print("\n=== Test: AMD EPYC ===")

    report = load_fixture("amd_epyc_centos")

    assert len(report.cpus) == 2
    cpu = report.cpus[1]
    assert cpu.proc == 1
    assert cpu.vendor_id == "AuthenticAMD"
    assert cpu.family == 23
    assert cpu.model == 1
    assert cpu.model_name == "AMD EPYC 7551 32-Core Processor"
    assert cpu.rev == 2
    assert cpu.microcode == 0x1000065
    assert cpu.freq == 1996.245
    assert cpu.cache.l2 == 512 * 1024
    assert cpu.cache.alignment == 64 and cpu.cache.flush == 64
    assert cpu.siblings == 2 and cpu.cores == 1
    assert cpu.apic_id == 1 and cpu.init_apic_id == 1
    assert cpu.fpu and cpu.fpu_exceptions and cpu.wp
    assert cpu.cpuid_level == 13
    assert cpu.features[:3] == ["fpu", "vme", "de"]
    assert cpu.features[-1] == "arch_capabilities"
    assert cpu.bugs == ["sysret_ss_attrs", "null_seg", "spectre_v1", "spectre_v2", "spec_store_bypass"]
    assert cpu.bogomips == 3992.49
    assert (cpu.tlb.n, cpu.tlb.page_size) == (1024, 4096)
    assert (cpu.addr_sizes.phys, cpu.addr_sizes.virt) == (40, 48)
    assert cpu.power_mgmt == ""
    assert cpu.impl == 0 and cpu.name() == "generic"

    print("✓ AMD EPYC passed")


def test_intel_skylake():
    """Intel Skylake guest with a 16 MB L2 'cache size'"""
    print("\n=== Test: Intel Skylake ===")

    report = load_fixture("intel_skylake_ubuntu")

    assert len(report.cpus) == 1
    cpu = report.cpus[0]
    assert cpu.vendor_id == "GenuineIntel"
    assert (cpu.family, cpu.model, cpu.rev) == (6, 94, 3)
    assert cpu.model_name == "Intel Core Processor (Skylake, IBRS)"
    assert cpu.freq == 3791.976
    assert cpu.cache.l2 == 16384 * 1024
    assert "srbds" in cpu.bugs
    assert cpu.tlb.n == 0

    print("✓ Intel Skylake passed")


# ============================================================================
# Serialization
# ============================================================================

def test_report_serialization():
    """External names are used, zero fields omitted, implementer named"""
    print("\n=== Test: Serialization ===")

    report = load_fixture("raspberry_pi_4b")
    data = json.loads(report.to_json())

    cpu = data["cpus"][0]
    assert cpu["processor"] == 0
    assert cpu["micro_arch"] == ""
    assert cpu["implementer"] == "ARM Ltd"
    assert cpu["part_number"] == 0xd08
    assert cpu["revision"] == 3
    assert cpu["arch"] == 7
    assert "variant" not in cpu, "Zero fields are omitted"
    assert "cache" not in cpu, "Empty composite fields are omitted"
    assert "vendor_id" not in cpu
    assert data["misc"][0] == {"key": "Hardware", "value": "BCM2711"}

    epyc = load_fixture("amd_epyc_centos").to_dict()["cpus"][0]
    assert epyc["cache"] == {"l2": 512 * 1024, "alignment": 64, "flush": 64}
    assert epyc["tlb"] == {"num_pages": 1024, "page_size": 4096}
    assert epyc["address_sizes"] == {"physical_bits": 40, "virtual_bits": 48}
    assert epyc["frequency_mhz"] == 1996.245
    assert epyc["write_protection"] is True
    assert "implementer" not in epyc

    print("✓ Serialization passed")


# ============================================================================
# Test Runner
# ============================================================================

def run_all_tests():
    """Run all scanner tests"""
    print("=" * 60)
    print("cpuinfo Scanner Test Suite")
    print("=" * 60)

    tests = [
        ("ARM Record", test_arm_record),
        ("Processor Ordering", test_records_sorted_by_processor),
        ("Misc Fields", test_unknown_keys_kept_as_misc),
        ("Case-sensitive Keys", test_keys_are_case_sensitive),
        ("Composite Fields", test_composite_fields),
        ("Malformed Values", test_malformed_values_default_to_zero),
        ("Fresh Records", test_records_do_not_share_state),
        ("Trailing Record", test_trailing_record),
        ("Repeated Separators", test_repeated_separators),
        ("Bytes Input", test_bytes_and_crlf_input),
        ("Newline-only Line Splitting", test_only_newlines_split_lines),
        ("Key Synonyms", test_key_table_synonyms),
        ("Raspberry Pi 4B", test_raspberry_pi_4b),
        ("RockPro64", test_rockpro64),
        ("AMD EPYC", test_amd_epyc),
        ("Intel Skylake", test_intel_skylake),
        ("Serialization", test_report_serialization),
    ]

    passed = 0
    failed = 0

    for test_name, test_func in tests:
        try:
            test_func()
            passed += 1
        except AssertionError as e:
            print(f"\n✗ {test_name} FAILED: {e}")
            failed += 1
        except Exception as e:
            print(f"\n✗ {test_name} ERROR: {e}")
            failed += 1

    print("\n" + "=" * 60)
    print("Test Summary")
    print("=" * 60)
    print(f"Passed: {passed}/{len(tests)}")
    print(f"Failed: {failed}/{len(tests)}")

    if failed == 0:
        print("\n✓ All tests passed!")
        return 0
    else:
        print(f"\n✗ {failed} test(s) failed")
        return 1


if __name__ == "__main__":
    sys.exit(run_all_tests())
