from multimodal.topics import CANONICAL_TOPICS, normalize_topic, normalize_topics


def test_aliases_resolve_to_the_same_canonical_topic():
    assert normalize_topic("AI") == "AI tools"
    assert normalize_topic("chatgpt") == "AI tools"
    assert normalize_topic("artificial intelligence") == "AI tools"


def test_alias_lookup_ignores_case_and_surrounding_whitespace():
    assert normalize_topic("  Pricing Strategy ") == "Pricing"
    assert normalize_topic("SOCIAL MEDIA") == "Marketing"


def test_canonical_topics_get_canonical_casing():
    assert normalize_topic("productivity") == "Productivity"
    assert normalize_topic("content CREATION") == "Content creation"


def test_unknown_topics_pass_through_trimmed():
    assert normalize_topic("  Urban Gardening ") == "Urban Gardening"


def test_empty_topic_normalizes_to_empty_string():
    assert normalize_topic("") == ""
    assert normalize_topic("   ") == ""


def test_normalize_topics_dedupes_case_insensitively_and_caps_at_three():
    topics = normalize_topics(["ChatGPT", "AI", "ai tools", "Productivity", "Pricing", "Marketing"])
    assert topics == ["AI tools", "Productivity", "Pricing"]


def test_normalize_topics_strips_markers_and_trailing_punctuation():
    topics = normalize_topics(["- time management.", "• Urban Gardening!", "* ", ""])
    assert topics == ["Productivity", "Urban Gardening"]


def test_normalize_topics_never_returns_duplicates_or_empties():
    raw = ["focus", "Focus", " FOCUS ", "habits", "", "-", "Habits."]
    topics = normalize_topics(raw)
    assert 1 <= len(topics) <= 3
    assert all(topics)
    assert len({topic.lower() for topic in topics}) == len(topics)


def test_alias_targets_are_canonical():
    from multimodal.topics import TOPIC_ALIASES

    assert set(TOPIC_ALIASES.values()) <= set(CANONICAL_TOPICS)
