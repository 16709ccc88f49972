#!/usr/bin/env python3
"""
Read-only dump of a survey: its ordered questions (with the linked required
question category) and the response counts per category.

    python scripts/dump_survey_state.py <survey_id>
    python scripts/dump_survey_state.py --active-for <owner_id>
"""
import argparse
import json
import sys
from uuid import UUID

from survey_insights.core.config import get_settings
from survey_insights.core.errors import SurveyInsightsError
from survey_insights.db.session import Store
from survey_insights.repositories.surveys import SurveyRepository
from survey_insights.services.ingestion import category_counts_for_survey


def dump(repo: SurveyRepository, survey_id: UUID) -> dict:
    survey = repo.get_survey(survey_id)
    questions = repo.get_questions(survey_id)
    return {
        "survey": {
            "id": str(survey.id),
            "title": survey.title,
            "owner": str(survey.user_id),
            "is_active": survey.is_active,
        },
        "questions": [
            {
                "order": q.order_num,
                "type": q.question_type,
                "text": q.question_text,
                "category": q.required_question.category if q.required_question else None,
            }
            for q in questions
        ],
        "category_counts": category_counts_for_survey(repo.db, survey_id),
    }


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("survey_id", nargs="?", type=UUID)
    parser.add_argument("--active-for", type=UUID, metavar="OWNER_ID", help="dump the owner's active survey")
    args = parser.parse_args(argv)
    if not args.survey_id and not args.active_for:
        parser.error("give a survey id or --active-for OWNER_ID")

    store = Store(get_settings())
    db = store.session()
    try:
        repo = SurveyRepository(db)
        survey_id = args.survey_id or repo.get_active_survey(args.active_for).id
        print(json.dumps(dump(repo, survey_id), indent=2, ensure_ascii=False))
        return 0
    except SurveyInsightsError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    finally:
        db.close()
        store.dispose()


if __name__ == "__main__":
    sys.exit(main())
