from app.grading.graph_extractor import extract_logical_graph
from app.grading.prompts.grader import GRADER_SYSTEM_PROMPT, build_grading_prompt
from app.tests.fakes import binding, client_db_snapshot, make_snapshot, shape


def test_prompt_embeds_problem_graph_types_and_counts():
    graph = extract_logical_graph(client_db_snapshot())

    prompt = build_grading_prompt("Design a URL shortener", graph)

    assert 'The candidate is trying to solve this problem: "Design a URL shortener"' in prompt
    assert '"dbType": "postgres"' in prompt
    assert '"from": "s1"' in prompt
    assert "Component types found: client, database" in prompt
    assert "Total components: 2" in prompt
    assert "Total connections: 1" in prompt


def test_prompt_lists_each_component_type_once_in_first_seen_order():
    graph = extract_logical_graph(make_snapshot(
        shape("s1", "server", label="API 1"),
        shape("s2", "loadBalancer", label="LB"),
        shape("s3", "server", label="API 2"),
        binding("b1", "a1", "s2", "start"),
        binding("b2", "a1", "s1", "end"),
    ))

    prompt = build_grading_prompt("Design a web tier", graph)

    assert "Component types found: server, loadBalancer\n" in prompt
    assert "Total components: 3" in prompt


def test_prompt_is_deterministic_and_carries_no_visual_data():
    graph = extract_logical_graph(client_db_snapshot())

    first = build_grading_prompt("Design a URL shortener", graph)
    second = build_grading_prompt("Design a URL shortener", graph)

    assert first == second
    for visual_key in ('"w"', '"h"', '"x"', '"rotation"', '"dash"'):
        assert visual_key not in first


def test_system_prompt_covers_every_criterion():
    for criterion in ("Scalability", "Data Consistency", "Component Choice", "Security", "Completeness"):
        assert criterion in GRADER_SYSTEM_PROMPT
