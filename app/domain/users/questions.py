"""Maid experience questionnaire and answer validation"""

from ...errors import ValidationError

TEXT = "text"
RADIO = "radio"
SELECT = "select"
MULTI_SELECT = "multi"

MAX_TEXT_ANSWER_LENGTH = 1000

MAID_EXPERIENCE_QUESTIONS = [
    {
        "id": "exp_years",
        "text": "Years of professional cleaning experience?",
        "type": RADIO,
        "options": ["0-1 year", "1-3 years", "3-5 years", "5+ years"],
    },
    {
        "id": "specialties",
        "text": "Which specialized services can you provide?",
        "type": MULTI_SELECT,
        "options": ["Deep Cleaning", "Ironing", "Windows", "Oven Cleaning", "Laundry", "Move-in/out"],
    },
    {
        "id": "supplies",
        "text": "Do you bring your own cleaning supplies?",
        "type": RADIO,
        "options": [
            "I bring everything",
            "Client must provide everything",
            "I bring basic chemicals only",
        ],
    },
    {
        "id": "pets",
        "text": "Are you comfortable working in homes with pets?",
        "type": RADIO,
        "options": ["Yes", "No", "Small pets only"],
    },
    {
        "id": "availability",
        "text": "Which days are you typically available?",
        "type": MULTI_SELECT,
        "options": ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"],
    },
]

QUESTIONS_BY_ID = {q["id"]: q for q in MAID_EXPERIENCE_QUESTIONS}


def validate_experience_answers(answers: list[dict]) -> list[dict]:
    """
    Validate answers against the questionnaire.

    Each answer is {"questionId", "answers": [str, ...]}. Radio and select
    questions take exactly one listed option, multi-select takes one or more
    listed options, text takes one free-form string. The stored question text
    always comes from the catalog.

    Returns:
        Normalized answers in catalog order

    Raises:
        ValidationError: On unknown questions, duplicates or invalid choices
    """
    seen = {}
    for answer in answers:
        question_id = answer["questionId"]
        question = QUESTIONS_BY_ID.get(question_id)
        if not question:
            raise ValidationError(f"Unknown experience question: {question_id}")
        if question_id in seen:
            raise ValidationError(f"Question {question_id} was answered more than once")

        values = [v.strip() for v in answer.get("answers") or [] if v and v.strip()]
        if not values:
            raise ValidationError(f"Question {question_id} needs an answer")

        if question["type"] == TEXT:
            if len(values) != 1:
                raise ValidationError(f"Question {question_id} takes a single text answer")
            if len(values[0]) > MAX_TEXT_ANSWER_LENGTH:
                raise ValidationError(f"Answer to {question_id} is too long")
        else:
            invalid = [v for v in values if v not in question["options"]]
            if invalid:
                raise ValidationError(f"Invalid option(s) for {question_id}: {', '.join(invalid)}")
            if question["type"] in (RADIO, SELECT) and len(values) != 1:
                raise ValidationError(f"Question {question_id} takes exactly one option")
            if question["type"] == MULTI_SELECT:
                # Keep catalog order, drop repeats
                values = [o for o in question["options"] if o in values]

        seen[question_id] = {"questionId": question_id, "question": question["text"], "answers": values}

    return [seen[q["id"]] for q in MAID_EXPERIENCE_QUESTIONS if q["id"] in seen]
