"""
================================================================================
CODEBASE TUTORIAL GENERATOR - FLOW DEFINITION
================================================================================
The pipeline as a PocketFlow flow:

    FetchRepo → IdentifyAbstractions → AnalyzeRelationships →
    OrderChapters → WriteChapters → CombineTutorial

Nodes run strictly in sequence and are built without node-level retries:
transport retries happen inside the LLM provider, and a response that
breaks its contract is not retried at all, it stops the run.
================================================================================
"""

from pocketflow import Flow

from tutorial_gen.nodes import (
    FetchRepo,
    IdentifyAbstractions,
    AnalyzeRelationships,
    OrderChapters,
    WriteChapters,
    CombineTutorial,
)


def create_tutorial_flow():
    """
    Creates and returns the codebase tutorial generation flow.

    Returns:
        Flow: A PocketFlow Flow object ready to be run with shared data
    """
    fetch_repo = FetchRepo()
    identify_abstractions = IdentifyAbstractions()
    analyze_relationships = AnalyzeRelationships()
    order_chapters = OrderChapters()
    write_chapters = WriteChapters()
    combine_tutorial = CombineTutorial()

    fetch_repo >> identify_abstractions
    identify_abstractions >> analyze_relationships
    analyze_relationships >> order_chapters
    order_chapters >> write_chapters
    write_chapters >> combine_tutorial

    return Flow(start=fetch_repo)
