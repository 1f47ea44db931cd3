#!/usr/bin/env python3
"""
Backup and Restore - Export a persistent collection and load it elsewhere.

Usage:
    python examples/backup_restore.py [data_dir]
"""

import sys
import tempfile

from tablemap import Collection, connect


def main():
    data_dir = sys.argv[1] if len(sys.argv) > 1 else tempfile.mkdtemp()

    with Collection("inventory", data_dir=data_dir) as inventory:
        inventory.changed(lambda key, old, new: print(f"  {key}: {old} -> {new}"))

        print("Writing inventory:")
        inventory.set("widget", {"stock": 10, "price": 2.5})
        inventory.set("gadget", {"stock": 0, "price": 9.0})
        inventory.math("widget", "-", 3, "stock")

        with inventory.observe("gadget") as gadget:
            gadget["discontinued"] = True

        document = inventory.export()

    print()
    print(f"Exported {len(document)} bytes from {data_dir}")

    with connect("memory://", name="restored") as restored:
        count = restored.import_data(document)
        print(f"Restored {count} entries")
        restored.sweep("discontinued", True)
        print(f"After sweep: {list(restored.entries())}")


if __name__ == "__main__":
    main()
