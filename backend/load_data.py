"""
Data Loader Script - Loads a question bank JSON file into QuizHub via the admin API.

Reads the question file and posts each question to POST /api/questions
as an admin account. The file holds a JSON array of objects with the
keys subject, question, options, correctAnswer (or correct_answer),
difficulty and explanation.

Usage:
    python load_data.py questions.json                              # Uses default URL
    python load_data.py questions.json http://localhost:8000        # Custom API URL
"""

import json
import sys
import os

import httpx


def to_payload(item: dict) -> dict:
    """Map a raw question record onto the admin API's payload."""
    correct = item.get("correct_answer", item.get("correctAnswer"))
    return {
        "subject": item.get("subject"),
        "question": item.get("question"),
        "options": item.get("options", []),
        "correct_answer": correct,
        "difficulty": item.get("difficulty"),
        "explanation": item.get("explanation", ""),
    }


def main():
    if len(sys.argv) < 2:
        print("Usage: python load_data.py <questions.json> [api_url]")
        sys.exit(1)

    data_file = sys.argv[1]
    api_url = sys.argv[2] if len(sys.argv) > 2 else os.getenv("API_URL", "http://localhost:8000")
    questions_url = f"{api_url}/api/questions"

    headers = {
        "X-User-Id": os.getenv("LOADER_USER_ID", "loader"),
        "X-User-Email": os.getenv("LOADER_USER_EMAIL", "admin@test.com"),
    }

    if not os.path.exists(data_file):
        print(f"Error: Could not find {data_file}")
        sys.exit(1)

    print(f"Loading questions from: {data_file}")
    with open(data_file, 'r') as f:
        raw_questions = json.load(f)

    print(f"Found {len(raw_questions)} questions to load")
    print(f"Sending to: {questions_url}")
    print()

    added = 0
    failed = []
    with httpx.Client(timeout=30.0, headers=headers) as client:
        for index, item in enumerate(raw_questions):
            resp = client.post(questions_url, json=to_payload(item))
            if resp.status_code == 201:
                added += 1
            else:
                failed.append((index, resp.status_code, resp.text[:200]))

    print("=" * 60)
    print("LOAD SUMMARY")
    print("=" * 60)
    print(f"  Total Read:   {len(raw_questions)}")
    print(f"  Added:        {added}")
    print(f"  Failed:       {len(failed)}")
    print("=" * 60)

    for index, status, body in failed:
        print(f"  ❌ #{index}: HTTP {status} ({body})")

    if failed:
        sys.exit(1)
    print("✅ Question bank loaded.")


if __name__ == "__main__":
    main()
