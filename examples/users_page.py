"""
Page object for a users screen, run against a hand-written CUP tree.

Point ``source`` at ``cup.Session()`` instead to query the live foreground
window; every attribute read recaptures the tree.

Usage:
    python examples/users_page.py
"""

from __future__ import annotations

from cup_pages import collection, count, create, is_present, text

TREE = {
    "version": "0.1.0",
    "platform": "web",
    "screen": {"w": 1280, "h": 800},
    "tree": [
        {
            "id": "e0",
            "role": "document",
            "name": "Users",
            "children": [
                {
                    "id": "e1",
                    "role": "group",
                    "name": "Admins",
                    "attributes": {"class": "admins"},
                    "children": [
                        {
                            "id": "e2",
                            "role": "table",
                            "name": "Administrators",
                            "children": [
                                {
                                    "id": "e3",
                                    "role": "row",
                                    "name": "",
                                    "children": [
                                        {"id": "e4", "role": "cell", "name": "Mary"},
                                        {"id": "e5", "role": "cell", "name": "Watson"},
                                    ],
                                },
                                {
                                    "id": "e6",
                                    "role": "row",
                                    "name": "",
                                    "children": [
                                        {"id": "e7", "role": "cell", "name": "John"},
                                        {"id": "e8", "role": "cell", "name": "Doe"},
                                    ],
                                },
                            ],
                        }
                    ],
                },
                {"id": "e9", "role": "button", "name": "Add user", "actions": ["click"]},
            ],
        }
    ],
}

page = create(
    {
        "admins": {
            "scope": ".admins",
            "users": collection(
                scope="table",
                item_scope="tr",
                item={
                    "first_name": text("td", at=0),
                    "last_name": text("td", at=1),
                },
                caption=text(),
            ),
            "cells": count("td"),
        },
        "can_add": is_present('button[name="Add user"]'),
    },
    source=TREE,
)

if __name__ == "__main__":
    users = page.admins.users()
    print(f"{users.caption}: {users.count} users, {page.admins.cells} cells")
    for i in range(users.count):
        user = page.admins.users(i)
        print(f"  {i}: {user.first_name} {user.last_name}  (scope: {user.scope})")
    print(f"Add button present: {page.can_add}")
