import json

from app.grading.artifacts import LogicalGraph

GRADER_SYSTEM_PROMPT = """
You are a Senior Staff Engineer conducting a system design interview.
The candidate has drawn an architecture diagram on a whiteboard. You receive it as a
logical graph: each node is a component (its `type` and semantic `props` such as a label
or database engine) and each edge is a directed connection from one component to another.

Analyze the design based on:
1. Scalability - Are there single points of failure? Can the system handle increased load?
2. Data Consistency - Is the data flow logical? Are there potential consistency issues?
3. Component Choice - Are the right components used for the problem?
4. Security - Are there obvious security risks or vulnerabilities?
5. Completeness - What essential components are missing?

Rules:
- Score from 1 to 10. Be fair but rigorous.
- Explain the score in `feedback`.
- Keep each list item short and concrete, referring to components by label or type.
- A connection that points at a component missing from the node list is a dangling arrow; treat it as a design smell.
""".strip()


def build_grading_prompt(problem_statement: str, graph: LogicalGraph) -> str:
    graph_json = json.dumps(graph.model_dump(mode="json", by_alias=True), indent=2)
    component_types = ", ".join(graph.node_types())

    return (
        f'The candidate is trying to solve this problem: "{problem_statement}"\n\n'
        "Here is their current design represented as a graph:\n"
        f"{graph_json}\n\n"
        f"Component types found: {component_types}\n"
        f"Total components: {len(graph.nodes)}\n"
        f"Total connections: {len(graph.edges)}\n\n"
        "Provide:\n"
        "- A score from 1-10\n"
        "- Detailed feedback explaining the score\n"
        "- A list of strengths (what they did well)\n"
        "- A list of weaknesses (what could be improved)\n"
        "- Missing components they should consider adding\n"
        "- Any security risks you identified"
    )
