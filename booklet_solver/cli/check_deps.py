"""Verify that all required libraries are importable."""

from __future__ import annotations

import importlib
import sys
from typing import List, Tuple

# (display name, import name)
REQUIRED_MODULES = [
    ("pdfplumber", "pdfplumber"),
    ("pymupdf (fitz)", "fitz"),
    ("Pillow (PIL)", "PIL"),
    ("requests", "requests"),
    ("pydantic", "pydantic"),
    ("PyYAML", "yaml"),
]

PROVIDER_MODULES = [
    ("openai (provider)", "openai"),
    ("anthropic (provider)", "anthropic"),
]


def check_dependencies() -> List[Tuple[str, bool, str]]:
    """Check required dependencies. Returns list of (name, ok, message)."""
    results: List[Tuple[str, bool, str]] = []

    for name, module in REQUIRED_MODULES + PROVIDER_MODULES:
        try:
            imported = importlib.import_module(module)
        except ImportError as e:
            results.append((name, False, f"Missing: {e}"))
            continue
        version = getattr(imported, "__version__", None)
        results.append((name, True, f"OK, version {version}" if version else "OK"))

    return results


def run_check(verbose: bool = True) -> bool:
    """Run dependency check, print report, return True if all OK."""
    results = check_dependencies()
    ok_count = sum(1 for _, ok, _ in results if ok)
    all_ok = ok_count == len(results)

    if verbose:
        print("Dependency check\n")
        for name, ok, msg in results:
            status = "OK" if ok else "MISSING"
            print(f"  {name}: {msg if ok else status + '  ' + msg}")
        print()
        if all_ok:
            print("All checked dependencies are installed.")
        else:
            print(f"Problems with {len(results) - ok_count} of {len(results)}. Install missing ones with: pip install -e .")

    return all_ok


if __name__ == "__main__":
    success = run_check(verbose=True)
    sys.exit(0 if success else 1)
