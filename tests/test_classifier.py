from groupchat.classifier import THEMES, classify_importance, extract_tags, infer_message_type
from groupchat.states import Importance, MessageType


def _pad(text: str, length: int) -> str:
    return (text + " " + "x" * length)[:length]


def test_importance_high_needs_insight_keyword_and_length():
    text = _pad("We reached a breakthrough", 150)
    assert len(text) == 150
    assert classify_importance(text) == Importance.HIGH


def test_importance_short_insight_is_not_high():
    assert classify_importance("A breakthrough!") == Importance.LOW


def test_importance_medium_for_question_keyword():
    text = _pad("But why would that be", 50)
    assert len(text) == 50
    assert classify_importance(text) == Importance.MEDIUM


def test_importance_medium_for_long_text():
    assert classify_importance("y" * 201) == Importance.MEDIUM


def test_importance_low_for_short_plain_text():
    assert classify_importance("0123456789") == Importance.LOW


def test_importance_is_case_insensitive():
    text = _pad("BREAKTHROUGH incoming", 120)
    assert classify_importance(text) == Importance.HIGH


def test_extract_tags_follows_vocabulary_order_without_duplicates():
    tags = extract_tags("Systems and ETHICS, ethics too, and Consciousness from systems")
    assert tags == ["consciousness", "ethics", "systems"]
    assert tags == [t for t in THEMES if t in tags]


def test_extract_tags_is_substring_based():
    # "ai" is found inside "explain"
    assert "ai" in extract_tags("Let me explain")
    assert extract_tags("") == []


def test_infer_message_type():
    assert infer_message_type("Is this it?") == MessageType.QUESTION
    assert infer_message_type("A real insight emerges.") == MessageType.INSIGHT
    assert infer_message_type("I wonder about that.") == MessageType.THOUGHT
    assert infer_message_type("Connecting the threads now.") == MessageType.SYNTHESIS
    assert infer_message_type("Plain statement.") == MessageType.MESSAGE


def test_question_mark_wins_over_other_signals():
    assert infer_message_type("What breakthrough might be waiting here?") == MessageType.QUESTION


def test_type_signals_ignore_case():
    # capitalised sentence openers still count, e.g. Echo's synthesis template
    assert infer_message_type("Connecting the threads of our discussion, I see...") == MessageType.SYNTHESIS
    assert infer_message_type("Thinking about this more carefully.") == MessageType.THOUGHT
    assert infer_message_type("BREAKTHROUGH: the loop closes.") == MessageType.INSIGHT
