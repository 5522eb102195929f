"""Error handling — fail-fast export errors and what they leave behind.

Demonstrates the export error hierarchy and how to handle errors
programmatically using structured attributes.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from doclib_export import (
    ContainerNotFound,
    Exporter,
    ExportError,
    OutputAlreadyExists,
    open_site,
)

if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmp:
        site_root = Path(tmp, "site")
        (site_root / "Docs").mkdir(parents=True)
        (site_root / "Docs" / "a.pdf").write_bytes(b"%PDF")
        out = Path(tmp, "out")
        out.mkdir()

        with open_site(str(site_root)) as site:
            exporter = Exporter(site, out)

            # --- ContainerNotFound stops the run; finished containers stay ---
            try:
                exporter.run(["Docs", "Missing"])
            except ContainerNotFound as exc:
                print(f"ContainerNotFound: {exc}")
                print(f"  container={exc.container}, backend={exc.backend}")
                print(f"  already exported: {[r.container for r in exporter.results]}")

            # --- OutputAlreadyExists: Docs was exported above ---
            try:
                Exporter(site, out).run(["Docs"])
            except OutputAlreadyExists as exc:
                print(f"\nOutputAlreadyExists: {exc}")
                print(f"  path={exc.path}")

            # --- Catch any export error with the base class ---
            for name in ["Docs", "../escape"]:
                try:
                    Exporter(site, out).export_container(name)
                except ExportError as exc:
                    print(f"\nExportError ({type(exc).__name__}): {exc}")
