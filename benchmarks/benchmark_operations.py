"""
Benchmark Suite for the Hermetic FHE Service

This benchmark suite measures, per parameter set:
1. Key generation time
2. Boolean and 8-bit integer encryption / decryption time
3. Time for every homomorphic operation on 8-bit operands
4. Envelope export size and time

Usage:
    python benchmarks/benchmark_operations.py            # FAST and DEFAULT
    python benchmarks/benchmark_operations.py SECURE     # selected sets
"""

import json
import os
import platform
import sys
import time
from datetime import datetime
from typing import Any, Callable, Dict, List

import numpy as np
import psutil

from hermetic_fhe.crypto.types import OperationType, ParameterSet
from hermetic_fhe.service import FheService

NUM_BITS = 8
REPEATS = 3


def get_system_specs() -> Dict[str, Any]:
    """Get system specifications for the report."""
    return {
        "cpu": platform.processor() or "Unknown",
        "cpu_count": os.cpu_count(),
        "ram_total_gb": round(psutil.virtual_memory().total / (1024 ** 3), 2),
        "platform": platform.platform(),
        "python_version": platform.python_version(),
    }


def time_call(fn: Callable[[], Any], repeats: int = REPEATS) -> Dict[str, float]:
    """Run fn repeats times and summarize wall time in milliseconds."""
    times = []
    for _ in range(repeats):
        start = time.perf_counter()
        fn()
        times.append((time.perf_counter() - start) * 1000)
    return {
        "mean_time_ms": float(np.mean(times)),
        "std_dev_ms": float(np.std(times)),
        "min_time_ms": float(np.min(times)),
        "max_time_ms": float(np.max(times)),
    }


def benchmark_parameter_set(service: FheService, parameter_set: ParameterSet) -> Dict[str, Any]:
    print(f"Benchmarking {parameter_set.value}...")

    start = time.perf_counter()
    client_id, server_id = service.key_manager.generate(parameter_set)
    keygen_ms = (time.perf_counter() - start) * 1000
    print(f"  Key generation: {keygen_ms:.1f}ms")

    result: Dict[str, Any] = {
        "key_generation_ms": keygen_ms,
        "context": service.backend.get_context_info(service.registry.get(server_id)),
    }

    result["encrypt_boolean"] = time_call(
        lambda: service.encryptor.encrypt_boolean(client_id, True)
    )
    result["encrypt_integer"] = time_call(
        lambda: service.encryptor.encrypt_integer(client_id, 42, NUM_BITS)
    )

    flag = service.encryptor.encrypt_boolean(client_id, True)
    other_flag = service.encryptor.encrypt_boolean(client_id, False)
    a = service.encryptor.encrypt_integer(client_id, 42, NUM_BITS)
    b = service.encryptor.encrypt_integer(client_id, -17, NUM_BITS)

    result["decrypt_boolean"] = time_call(lambda: service.decryptor.decrypt_boolean(client_id, flag))
    result["decrypt_integer"] = time_call(lambda: service.decryptor.decrypt_integer(client_id, a))

    operations = {}
    for operation in OperationType:
        if operation is OperationType.NOT:
            operands: List[str] = [flag]
        elif operation in (OperationType.AND, OperationType.OR, OperationType.XOR):
            operands = [flag, other_flag]
        else:
            operands = [a, b]
        operations[operation.value] = time_call(
            lambda: service.dispatcher.evaluate(server_id, operation, operands), repeats=1
        )
        print(f"  {operation.value}: {operations[operation.value]['mean_time_ms']:.1f}ms")
    result["operations"] = operations

    start = time.perf_counter()
    envelope = service.export_value(client_id, a)
    result["export_integer"] = {
        "time_ms": (time.perf_counter() - start) * 1000,
        "envelope_bytes": len(envelope),
    }
    return result


def generate_json_report(results: Dict[str, Any]) -> str:
    """Generate JSON report with system specs and results."""
    report = {
        "test_date": datetime.now().isoformat(),
        "system_specs": get_system_specs(),
        "num_bits": NUM_BITS,
        "results": results,
    }

    filename = "benchmark_report.json"
    with open(filename, "w") as f:
        json.dump(report, f, indent=2)

    print(f"JSON report saved to {filename}")
    return filename


def main():
    """Run all benchmarks and generate report."""
    names = sys.argv[1:] or ["FAST", "DEFAULT"]
    parameter_sets = [ParameterSet.parse(name) for name in names]

    print("Starting benchmark suite for the FHE service...")
    service = FheService.create()
    try:
        results = {ps.value: benchmark_parameter_set(service, ps) for ps in parameter_sets}
    finally:
        service.shutdown()

    report_file = generate_json_report(results)

    print("\nSummary:")
    for name, result in results.items():
        print(
            f"- {name}: keygen {result['key_generation_ms']:.0f}ms, "
            f"ADD {result['operations']['ADD']['mean_time_ms']:.0f}ms, "
            f"MULTIPLY {result['operations']['MULTIPLY']['mean_time_ms']:.0f}ms"
        )
    print(f"Results report: {report_file}")


if __name__ == "__main__":
    main()
