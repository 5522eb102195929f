"""Quickstart — export a library from a local site folder.

Demonstrates:
- Laying out a site whose top-level folders are libraries
- Exporting one library recursively with export()
- Reading the manifest written next to the exported folder
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from doclib_export import export, read_manifest

if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmp:
        site = Path(tmp, "site")
        (site / "Shared Documents" / "Reports").mkdir(parents=True)
        (site / "Shared Documents" / "Forms").mkdir()
        (site / "Shared Documents" / "readme.txt").write_bytes(b"Hello, world!")
        (site / "Shared Documents" / "Reports" / "q1.csv").write_bytes(b"quarter,total\nq1,42\n")
        (site / "Shared Documents" / "Forms" / "AllItems.aspx").write_bytes(b"<form/>")

        out = Path(tmp, "out")
        out.mkdir()

        (result,) = export(str(site), out, ["Shared Documents"], recurse=True)
        print(f"Exported {len(result.records)} file(s) to {result.directory}")

        # One row per file; the Forms folder was never exported
        for record in read_manifest(result.manifest_path):  # type: ignore[arg-type]
            print(f"  {record.remote_relative_url} -> {record.local_file_name}")

    print("Done! Temp directory cleaned up automatically.")
