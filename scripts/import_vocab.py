#!/usr/bin/env python3
"""
Enroll vocabulary cards from a JSON file into the review database

Expected format:
    {"learner_id": "...", "language": "de",
     "cards": [{"term": "Haus", "display": "das Haus", "meaning": "house", "status": 1}]}
"""

import json
import sys
from pathlib import Path

from lexireview.core.database.database_manager import DatabaseManager
from lexireview.utils import utc_now


def import_vocab_data(json_path: str, db_path: str) -> dict[str, int]:
    """Enroll every card in json_path, returning imported and failed counts"""
    print(f"📖 Loading cards from {json_path}")
    with open(json_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    learner_id = str(data["learner_id"])
    language = data["language"]
    cards = data.get("cards", [])
    print(f"  📝 Loaded {len(cards)} cards for learner {learner_id} ({language})")

    db_manager = DatabaseManager(db_path)
    db_manager.init_database()

    imported = 0
    failed = 0
    now = utc_now()
    for card in cards:
        try:
            db_manager.set_card_status(
                learner_id,
                language,
                card["term"],
                int(card.get("status", 1)),
                now,
                display=card.get("display"),
                meaning=card.get("meaning"),
                reading=card.get("reading"),
            )
            imported += 1
        except (KeyError, ValueError) as e:
            print(f"  ⚠️  Failed to import card {card.get('term', 'unknown')}: {e}")
            failed += 1

    print(f"  ✅ Imported {imported} cards, {failed} failed")
    return {"imported": imported, "failed": failed}


def main():
    """Main import function"""
    if len(sys.argv) != 3:
        print("Usage: python import_vocab.py <input_json_path> <database_path>")
        print("Example: python import_vocab.py data/de_cards.json data/lexireview.db")
        sys.exit(1)

    json_path = sys.argv[1]
    db_path = sys.argv[2]

    if not Path(json_path).exists():
        print(f"❌ JSON file not found: {json_path}")
        sys.exit(1)

    result = import_vocab_data(json_path, db_path)
    sys.exit(0 if result["failed"] == 0 else 1)


if __name__ == "__main__":
    main()
