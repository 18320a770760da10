import pytest

from reqgraph.ir.requirements_ir import RequirementsSummary


def make_summary(actors=(), modules=(), **extra) -> RequirementsSummary:
    """
    actors: (name, description) pairs
    modules: (name, description, priority) triples
    """
    return RequirementsSummary(
        main_actors=[{"name": n, "description": d} for n, d in actors],
        candidate_modules=[
            {"name": n, "description": d, "priority": p} for n, d, p in modules
        ],
        **extra,
    )


@pytest.fixture
def invoicing_summary() -> RequirementsSummary:
    """Consultants submit invoices, the owner watches the numbers."""
    return make_summary(
        actors=[
            ("Consultant", "submits invoices"),
            ("Owner", "reviews invoices, uses reporting dashboard"),
        ],
        modules=[
            ("Invoice Portal", "portal for consultants to submit invoices", "must-have"),
            ("Reporting Dashboard", "dashboard for owner with analytics", "should-have"),
        ],
    )
