import asyncio

import pytest

from eume.crud import conversation as crud_conversation
from eume.crud import topic as crud_topic
from eume.personalization import DEFAULT_QUESTION, extract_topic_keywords


def add_user_messages(db, texts, user_id="device-1"):
    for text in texts:
        crud_conversation.add_message(db, user_id, "user", text)


def test_extract_topic_keywords_keeps_list_order():
    assert extract_topic_keywords("바다에 가서 가족이랑 노래를 불렀지") == ["가족", "바다", "노래"]


def test_analyze_positive_keywords_counts_user_messages(questions, db):
    add_user_messages(db, ["가족이 보고 싶어", "가족이랑 바다에 갔어"])
    crud_conversation.add_message(db, "device-1", "assistant", "노래 좋아하세요?")

    assert questions.analyze_positive_keywords("device-1") == ["가족", "바다"]


def test_pattern_analysis_needs_enough_messages(questions, ai, db):
    ai.fail = False
    ai.keywords = ["시골집"]
    add_user_messages(db, ["하나", "둘"])

    assert asyncio.run(questions.analyze_conversation_patterns("device-1")) == []


def test_pattern_analysis_failure_returns_empty(questions, db):
    add_user_messages(db, [f"이야기 {i}" for i in range(6)])

    assert asyncio.run(questions.analyze_conversation_patterns("device-1")) == []


def test_expected_effectiveness(questions, db):
    assert questions.calculate_expected_effectiveness("device-1", []) == 0.5
    assert questions.calculate_expected_effectiveness("device-1", ["꽃"]) == pytest.approx(0.52)

    crud_topic.record_outcome(db, "device-1", ["꽃"], True)
    assert questions.calculate_expected_effectiveness("device-1", ["꽃", "나무"]) == pytest.approx(0.665)


def test_fallback_question_uses_top_keyword(questions, db):
    add_user_messages(db, ["고향 생각이 나요"])

    question = asyncio.run(questions.generate_personalized_question("device-1"))

    assert question.question == "고향에 대해 기억나는 것이 있으신가요?"
    assert question.keywords == ["고향"]
    assert question.reasoning == "기본 질문 사용"


def test_fallback_question_without_history(questions):
    question = asyncio.run(questions.generate_personalized_question("device-1"))

    assert question.question == DEFAULT_QUESTION
    assert question.expected_effectiveness == 0.5


def test_generated_question(questions, ai):
    ai.fail = False
    ai.question = {"question": "고향 마당에 꽃이 피었나요?", "keywords": ["고향", "꽃"], "reasoning": "고향 회상"}

    question = asyncio.run(questions.generate_personalized_question("device-1", "봄 이야기"))

    assert question.question == "고향 마당에 꽃이 피었나요?"
    assert question.keywords == ["고향", "꽃"]
    assert question.expected_effectiveness == pytest.approx(0.54)


def test_feedback_records_set_and_pairs(questions, db):
    questions.record_question_effectiveness("device-1", ["가족", "고향", "음식"], True)

    assert crud_topic.get_topic(db, "device-1", ["가족", "고향", "음식"]).total_count == 1
    for pair in (["가족", "고향"], ["가족", "음식"], ["고향", "음식"]):
        assert crud_topic.get_topic(db, "device-1", pair).success_count == 1


def test_feedback_with_two_keywords_is_counted_once(questions, db):
    questions.record_question_effectiveness("device-1", ["가족", "고향"], False)

    assert crud_topic.get_topic(db, "device-1", ["가족", "고향"]).total_count == 1


def test_learning_status(questions, db):
    for outcome in (True, True):
        crud_topic.record_outcome(db, "device-1", ["바다"], outcome)
    for outcome in (True, False):
        crud_topic.record_outcome(db, "device-1", ["산"], outcome)
    add_user_messages(db, ["바다가 좋아"])

    status = questions.get_learning_status("device-1")

    assert status == {
        "total_topics": 2,
        "effective_topics": 1,
        "average_success_rate": 0.75,
        "top_keywords": ["바다"],
    }
