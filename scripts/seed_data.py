#!/usr/bin/env python3
"""
Seed script: populate a running Task Tracker API with sample tasks.

Usage:
    API_URL=http://localhost:5000 API_TOKEN=dev-token python scripts/seed_data.py
"""

import os
from datetime import UTC, datetime, timedelta

import requests

API_URL = os.environ.get("API_URL", "http://localhost:5000")
API_TOKEN = os.environ.get("API_TOKEN", "dev-token")
HEADERS = {"Authorization": f"Bearer {API_TOKEN}", "Content-Type": "application/json"}


def in_days(days: int) -> str:
    return (datetime.now(UTC) + timedelta(days=days)).isoformat()


TASKS = [
    {"title": "Pay rent", "priority": "high", "dueDate": in_days(3), "tags": ["home", "money"]},
    {"title": "Renew passport", "priority": "high", "dueDate": in_days(30), "tags": ["docs"]},
    {
        "title": "Book dentist appointment",
        "description": "Ask about the follow-up for the filling",
        "priority": "medium",
        "dueDate": in_days(7),
        "tags": ["health"],
    },
    {"title": "Read chapter 4", "priority": "low", "tags": ["learning"]},
    {"title": "Water the plants", "priority": "low", "tags": ["home"]},
    {
        "title": "Prepare quarterly report",
        "description": "Numbers from finance arrive on Monday",
        "priority": "high",
        "dueDate": in_days(10),
        "tags": ["work"],
    },
]

# Эти задачи сразу помечаются выполненными
COMPLETED_TITLES = {"Water the plants"}


def create_task(task_data: dict) -> dict | None:
    """Create a task via the API."""
    response = requests.post(f"{API_URL}/api/tasks", headers=HEADERS, json=task_data, timeout=10)
    if response.status_code == 201:
        task = response.json()["data"]
        print(f"  ✓ {task['title']} ({task['id']})")
        return task
    print(f"  ✗ {task_data['title']}: {response.status_code} {response.json().get('message')}")
    return None


def complete_task(task_id: str) -> None:
    response = requests.post(
        f"{API_URL}/api/tasks/{task_id}/complete", headers=HEADERS, timeout=10
    )
    response.raise_for_status()


def main():
    print(f"Seeding {API_URL} ...")

    for task_data in TASKS:
        task = create_task(task_data)
        if task and task["title"] in COMPLETED_TITLES:
            complete_task(task["id"])

    stats = requests.get(f"{API_URL}/api/tasks/stats", headers=HEADERS, timeout=10).json()["data"]
    print(
        f"Done: total={stats['total']} completed={stats['completed']} "
        f"pending={stats['pending']} overdue={stats['overdue']}"
    )


if __name__ == "__main__":
    main()
