import pytest

from eume.guidance import GuidanceRetriever, load_guide_data


@pytest.fixture(scope="module")
def retriever():
    return GuidanceRetriever()


def test_guidance_is_deterministic(retriever):
    text = "안녕하세요, 오늘 기분이 좋아요"

    assert retriever.retrieve_relevant_guidance(text) == retriever.retrieve_relevant_guidance(text)
    assert GuidanceRetriever().retrieve_relevant_guidance(text) == retriever.retrieve_relevant_guidance(text)


def test_guidance_without_match_has_no_situational_block(retriever):
    guidance = retriever.retrieve_relevant_guidance("음...")
    guide = load_guide_data()

    assert guidance.startswith("대화 시 기본 원칙:\n- ")
    assert "상황별 가이드" not in guidance
    assert guidance.endswith(f"- {guide['responsePatterns']['encouragingPhrases'][2]}")


def test_greeting_matches_contexts_by_priority(retriever):
    contexts = retriever.match_contexts("안녕하세요")

    assert [c.section for c in contexts] == ["기본 인사", "격려 표현"]
    assert [c.priority for c in contexts] == [1, 2]


def test_at_most_three_contexts(retriever):
    contexts = retriever.match_contexts("안녕, 기분도 좋고 날씨도 좋네")

    assert len(contexts) == 3
    assert all(c.priority == 1 for c in contexts)
    assert [c.section for c in contexts] == ["기본 인사", "감정 확인", "현재 인식"]


def test_situational_block_lists_sections(retriever):
    guidance = retriever.retrieve_relevant_guidance("고향 생각이 나요")

    assert "상황별 가이드:\n회상 주제:\n- 고향이 어디신가요?\n- 고향에서의 추억이 있으시나요?\n" in guidance


def test_matching_is_case_insensitive_for_latin_input(retriever):
    assert retriever.match_contexts("OK 모르겠어") == retriever.match_contexts("ok 모르겠어")


@pytest.mark.parametrize("stage, heading", [
    ("initial", "초기 대화 가이드"),
    ("reminiscence", "회상 활동 가이드"),
    ("closure", "마무리 가이드"),
    ("conversation", "일반 대화 가이드"),
])
def test_stage_guidance(retriever, stage, heading):
    assert retriever.stage_guidance(stage).startswith(heading)
