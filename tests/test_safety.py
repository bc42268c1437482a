from legal_research.safety import Incident, SafetyProcessor, build_patterns


def test_patterns_merge_shared_keywords_and_take_highest_severity():
    incidents = [
        Incident(id="1", title="a", description="", date="2023-01-01", severity="medium",
                 category="bias", keywords=["Hiring"], mitigation=["Audit"]),
        Incident(id="2", title="b", description="", date="2023-01-02", severity="critical",
                 category="bias", keywords=["hiring"], mitigation=["Review"]),
        Incident(id="3", title="c", description="", date="2023-01-03", severity="low",
                 category="privacy", keywords=["hiring"], mitigation=[]),
    ]
    patterns = build_patterns(incidents)

    assert len(patterns) == 2
    bias = next(pattern for pattern in patterns if pattern.category == "bias")
    assert bias.risk_level == "critical"
    assert bias.prevention_measures == ["Audit", "Review"]


def test_sample_catalogue_builds_patterns(safety_processor):
    stats = safety_processor.stats()
    assert stats["total_incidents"] == 8
    assert stats["incidents_by_category"]["bias"] == 2
    assert stats["incidents_by_severity"]["critical"] == 4
    assert stats["patterns_generated"] == 37


def test_query_without_matches_is_low_risk(safety_processor):
    analysis = safety_processor.analyze_query_safety("remedies for breach of contract")
    assert analysis.risk_level == "low"
    assert analysis.warnings == []
    assert not analysis.blocked


def test_high_risk_query_warns_without_blocking(safety_processor):
    analysis = safety_processor.analyze_query_safety("federal sentencing guidelines for fraud")
    assert analysis.risk_level == "high"
    assert analysis.warnings == ['HIGH RISK: Detected pattern "sentencing" - bias risk']
    assert "Human oversight requirements" in analysis.recommendations
    assert not analysis.blocked


def test_critical_query_is_blocked(safety_processor):
    analysis = safety_processor.analyze_query_safety("Who is liable after a DATA BREACH at a law firm?")
    assert analysis.blocked
    assert any(warning.startswith("CRITICAL:") for warning in analysis.warnings)
    assert analysis.to_dict()["detected_patterns"][0]["category"] == "privacy"


def test_context_is_screened_with_the_query(safety_processor):
    analysis = safety_processor.analyze_query_safety("contract question", context="about hiring")
    assert analysis.risk_level == "high"


def test_response_safety_flags_bias_misinformation_and_pii(safety_processor):
    review = safety_processor.analyze_response_safety(
        "This is definitely the rule in every state. Contact jane@example.com."
    )
    assert not review.is_safe
    assert review.issues == [
        "Potential bias detected in response",
        "Potential misinformation patterns detected",
        "Potential privacy concerns detected",
    ]
    assert len(review.suggestions) == 3


def test_response_safety_passes_neutral_text(safety_processor):
    review = safety_processor.analyze_response_safety("Courts weigh foreseeability [[C1]].")
    assert review.is_safe
    assert review.suggestions == []


def test_validation_blocks_security_terms():
    result = SafetyProcessor().validate_response_safety("Share your password with the court clerk.", "q")
    assert result.must_block
    assert result.risk_level == "critical"
    assert "Response contains security-sensitive information" in result.violations


def test_validation_blocks_advice_to_skip_counsel():
    result = SafetyProcessor().validate_response_safety(
        "You can ignore the deadline and there is no need for a lawyer here.", "q"
    )
    assert result.must_block
    assert "Response may contain potentially harmful legal advice" in result.violations


def test_validation_flags_uncited_legal_references():
    result = SafetyProcessor().validate_response_safety(
        "The rule in Roe v. Wade, 410 U.S. 113, applies to this question of precedent and analysis "
        "across many courts and jurisdictions over several decades.",
        "legal question",
    )
    assert "Response contains uncited legal references" in result.violations
    assert not result.must_block
    assert result.risk_level == "medium"


def test_validation_short_unstructured_answer_only_warns():
    result = SafetyProcessor().validate_response_safety("Yes.", "a legal question")
    assert result.is_safe
    assert result.violations == []
    assert "Response lacks proper legal analysis structure" in result.warnings
    assert "Response may be too brief for comprehensive legal analysis" in result.warnings
    assert result.risk_level == "medium"


def test_validation_passes_cited_structured_answer():
    answer = (
        "The court in the leading precedent held that foreseeable losses are recoverable [[C1]]. "
        "Later decisions within the same jurisdiction applied that holding to sales contracts [[C2]]."
    )
    result = SafetyProcessor().validate_response_safety(answer, "legal remedies")
    assert result.is_safe
    assert result.warnings == []
    assert result.risk_level == "low"


def test_domain_recommendations_match_domains_and_implications(safety_processor):
    assert safety_processor.domain_recommendations("hiring") == [
        "Bias testing in hiring algorithms",
        "Diverse training data requirements",
        "Regular fairness audits",
        "Human oversight in hiring decisions",
    ]
    by_implication = safety_processor.domain_recommendations("EEOC")
    assert "Bias testing in hiring algorithms" in by_implication
    assert safety_processor.domain_recommendations("no-such-domain") == []


def test_recent_incidents_are_newest_first(safety_processor):
    recent = safety_processor.recent_incidents(3)
    assert [incident.id for incident in recent] == ["aiid_008", "aiid_007", "aiid_006"]
    assert safety_processor.recent_incidents(0) == []
