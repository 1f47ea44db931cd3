#!/usr/bin/env python3
"""
Quick Start - Store, mutate and query JSON-like values by path.

Usage:
    python examples/quick_start.py
"""

from tablemap import MISSING, Collection


def main():
    users = Collection("users", in_memory=True)

    users.set("alice", {"name": "Alice", "age": 30, "tags": []})
    users.set("bob", {"name": "Bob", "age": 25, "tags": ["ops"]})

    # Path-addressed writes never touch the rest of the value
    users.push("alice", "admin", "tags")
    users.inc("alice", "age")
    users.set("alice", "Paris", "address.city")

    print(f"Alice: {users.get('alice')}")
    print(f"Bob's first tag: {users.get('bob', 'tags[0]')}")
    print(f"Carol set? {users.get('carol') is not MISSING}")
    print()

    print(f"Names: {users.map('name')}")
    print(f"Aged 31: {users.filter('age', 31)}")
    print(f"Total age: {users.reduce(lambda total, user, key: total + user['age'], 0)}")

    users.close()


if __name__ == "__main__":
    main()
