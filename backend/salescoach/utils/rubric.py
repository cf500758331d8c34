"""
Default sales-call rubric and the seeding routine that loads it.

The rubric is reference data: 7 steps of a sales call, each split into
substeps, each listing observable behaviors tagged with the proficiency level
(1=Learner .. 4=Master) they evidence.
"""

import logging
from typing import Dict, List

from sqlalchemy.orm import Session

from salescoach.models.models import Behavior, Step, Substep

logger = logging.getLogger(__name__)

DEFAULT_TARGET_SCORE = 3

# Behaviors are (proficiency_level, description). A description holding several
# behaviors separated by ";" is split into one behavior each when seeded.
DEFAULT_RUBRIC: List[Dict] = [
    {
        "title": "Preparation",
        "description": "Strategic preparation, client understanding, and technical preparation",
        "substeps": [
            ("Strategic preparation", [
                (1, "Prepares (ad-hoc) a call objective"),
                (1, "Plans calls a week ahead"),
                (1, "Formulates the open questions, that should be raised within a call"),
                (2, "Prepares a SMART call objective"),
                (2, "Prepares a call agenda"),
                (2, "Defines key/directive questions, that should be raised within a call"),
                (3, "Has both short and long term objectives identified for that customer"),
                (3, "Uses information about the adaptation ladder"),
                (4, "Focuses on genuinely meeting customer needs, demonstrating curiosity from the HCP's perspective"),
            ]),
            ("Client understanding", [
                (1, "Enters call with little or no review of the previous call notes/history"),
                (2, "Has reviewed previous call notes/sales history in CRM"),
                (2, "Makes assumptions about client needs"),
                (3, "Demonstrates awareness and knowledge of competitor activities"),
                (4, "Is always aware of the environment and collects relevant information to use in the call "
                    "(observes patients, secretary)"),
            ]),
            ("Technical preparation", [
                (1, "Chooses fitting promo materials"),
                (1, "Chooses the features and benefits to focus on"),
                (1, "Checks the iPad before the visit (presentation, charge)"),
                (2, "Prepares a hook\\hinge"),
                (2, "Plans how to respond to objections and how to position alternatives"),
                (3, "Plans the call individually, anticipating questions which will be asked, choosing materials "
                    "and solutions to position and options for closing"),
                (4, "Prepares individual solutions that will demonstrate added value for the customer"),
            ]),
        ],
    },
    {
        "title": "Opening",
        "description": "Greeting & introduction and relating behaviors",
        "substeps": [
            ("Greeting & introduction", [
                (1, "Introduces themself & the organisation"),
                (2, "Calls the doctor by name"),
                (2, "Mentions the reason for the visit"),
                (3, "Demonstrates effective presence: interest, conviction, appropriate energy (through body language)"),
                (4, "Is a recognized, trusted contact for the customer"),
            ]),
            ("Relating", [
                (1, "Creates a positive atmosphere (friendly, smiling, well-presented, polite)"),
                (2, "Understands various customer personality styles (insight colors)"),
                (3, "Shows flexibility in own style to meet different customer personality styles"),
                (4, "Creates a trusting client relationship through presence, charisma and a high level of "
                    "customer\\technical, market knowledge"),
            ]),
            ("Summary & hinge", [
                (1, "Summarises by recapping the last agenda"),
                (2, "Creates interest with a catchy hook/hinge"),
                (3, "Positions the purpose of the visit and the benefits for the customer to create interest "
                    "through the opening statement"),
                (4, "Raises an issue\\challenge which is relevant for the customer (and for which we have a "
                    "solution), the potential impact on him\\her and the needs that it creates"),
            ]),
            ("Agenda introduction", [
                (1, "Takes cues from the customer for timing and checks it"),
                (2, "Checks the relevance of the agenda and asks the customers for input to the meeting agenda"),
                (3, "Builds credibility and provides content"),
                (4, "Positions the wish to ask questions to help focus on the client's needs"),
            ]),
        ],
    },
    {
        "title": "Need Dialog",
        "description": "Questioning and active listening behaviors",
        "substeps": [
            ("Questioning", [
                (1, "Asks questions to gather information about current situation (HCP's potential)"),
                (2, "Explores HCP's satisfaction with the current situation (what is going well, what should change)"),
                (2, "Asks questions about the level of commitment"),
                (3, "Uses questioning techniques (prefacing/drilling down/trading) to create a need dialogue"),
                (4, "Uses a combination of different question types and techniques to appropriately expand the "
                    "dialogue, uncovers and understands the hidden needs"),
            ]),
            ("Active listening", [
                (1, "Listens attentively"),
                (2, "Uses verbal and non-verbal reinforcement"),
                (3, "Paces questions effectively (keeps silent after asking a question, avoids multiple-choice "
                    "questions, asks one question at time); uses the answer as a hinge"),
                (4, "Listens to the needs in detail, to understand, not to respond (effective listening)"),
            ]),
        ],
    },
    {
        "title": "Solution Dialog",
        "description": "Structuring, positioning, and checking solution behaviors",
        "substeps": [
            ("Structuring", [
                (1, "Provides an overview of what is about to be said"),
                (2, "Introduces the solution without giving details or checking"),
                (3, "Shares a relevant key message for the solution"),
                (4, "Delivers a well-thought-out individually tailored message and a solution for the specific "
                    "HCP's challenge"),
            ]),
            ("Positioning solution", [
                (1, "Links to needs using features and benefits"),
                (2, "Offers a solution as a reaction to the prior conversation"),
                (2, "Uses promotional materials in line with the brand strategy"),
                (2, "Supports the presentation by using iPAD content"),
                (3, "Offers a solution by including value adding features and benefits (added value could be "
                    "expertise, service, network etc)"),
                (3, "Uses visual aids appropriately and selectively"),
                (3, "Easily navigates the iPAD content"),
                (4, "Delivers a win-win solution that makes the HCP view them as a trusted advisor"),
            ]),
            ("Checking", [
                (1, "Asks a basic checking question only once"),
                (2, "Asks basic checking questions throughout the dialogue: how does it sound? "
                    "What do you think about it?"),
                (3, "Summarises client benefits"),
                (3, "Actively uses silence"),
                (4, "Concisely summarises and checks for agreement"),
            ]),
        ],
    },
    {
        "title": "Objection Resolution",
        "description": "Handling objections and maintaining dialogue",
        "substeps": [
            ("Objection handling", [
                (1, "Knows the objection handling model and partly uses it"),
                (2, "Acknowledges to reduce any customer negativity"),
                (2, "Handles common objections"),
                (3, "Has prepared for multiple possible objections and uses the objection handling model "
                    "consistently"),
                (3, "Probes to identify the underlying need"),
                (4, "Remains calm even with difficult objections; Keeps the dialogue interactive, even if the "
                    "objection is not resolved; Anticipates most objections; If an objection was not solved, "
                    "guarantees to give the answer to the client in the next call"),
            ]),
        ],
    },
    {
        "title": "Asking for Commitment",
        "description": "Summarizing and securing commitment behaviors",
        "substeps": [
            ("Summarizing", [
                (1, "Summarises the focus product information"),
                (2, "Positions the closing summary by reinforcing key benefits and value"),
                (3, "Acknowledges the value of the discussion"),
                (4, "Links the close to the adapted call objective; Summary takes into account the "
                    "individualized value proposition"),
            ]),
            ("Asking for commitment", [
                (1, "Is aware of buying signals (both verbal & non verbal), which indicate that it is time to "
                    "'ask for commitment'"),
                (2, "Does a final check for feedback on what has been positioned"),
                (3, "Gets the commitment on the concrete next steps (for specific patients)"),
                (4, "Has convinced the HCP with our solution and has agreed on the concrete next steps (by asking "
                    "implementation questions: who, what, where, when); The HCP commits to try the solution "
                    "with a number of patients"),
            ]),
            ("Maintaining rapport", [
                (1, "Continues with a positive atmosphere"),
                (2, "Demonstrates appreciation for the client's business; Personalises the Close; Is genuine"),
                (3, "Creates a favourable last impression"),
                (4, "Summarises feelings and attitudes as well as facts and arguments"),
            ]),
        ],
    },
    {
        "title": "Follow up",
        "description": "Post-call analysis and planning behaviors",
        "substeps": [
            ("Analyzing results", [
                (1, "Analyses the call results (was the call objective reached?) under manager's guidance"),
                (2, "Self-critically analyses the call results (what went well?, what should be improved?); "
                    "Execute on agreements (all action steps)"),
                (3, "Adjusts/Sets a SMART call objective for the next call"),
                (4, "Develops a plan to improve/enhance the outcome of the visits"),
            ]),
            ("Self-analyzing", [
                (1, "Analyses the call for strong points and areas for improvement under manager's guidance"),
                (2, "Self-critically analyses the call for strong points and areas for improvement"),
                (3, "Gives suggestions for improvement in selling skills"),
                (4, "Develops a plan to improve selling skills"),
            ]),
            ("Reporting", [
                (1, "Makes notes to record the most important information (during or after a call), uses CRM"),
                (2, "Keeps a record of all commitments in one place"),
                (3, "Keeps a record of all commitments in one place and checks it on a regular basis"),
                (4, "Uses the call notes to update planning documentation and customer database"),
            ]),
        ],
    },
]


def split_behavior_description(description: str) -> List[str]:
    """Split a compound behavior description on ';' into individual behaviors."""
    return [part.strip() for part in description.split(";") if part.strip()]


def validate_rubric(rubric: List[Dict]) -> List[str]:
    """
    Validate rubric structure before seeding.

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    for step in rubric:
        title = step.get("title") or "<untitled>"
        if not step.get("title"):
            errors.append("Step is missing a title")
        for substep_title, behaviors in step.get("substeps", []):
            for level, description in behaviors:
                if level not in (1, 2, 3, 4):
                    errors.append(f"Invalid proficiency level {level} in '{title} / {substep_title}'")
                if not split_behavior_description(description):
                    errors.append(f"Empty behavior description in '{title} / {substep_title}'")
    return errors


def seed_default_rubric(db: Session, rubric: List[Dict] = None) -> int:
    """
    Insert the rubric unless steps already exist.

    Args:
        db: Open database session
        rubric: Rubric definition, defaults to DEFAULT_RUBRIC

    Returns:
        Number of behaviors created, 0 when the database was already seeded

    Raises:
        ValueError: If the rubric definition is malformed
    """
    rubric = DEFAULT_RUBRIC if rubric is None else rubric

    if db.query(Step).first() is not None:
        logger.info("Rubric already present, skipping default data creation")
        return 0

    errors = validate_rubric(rubric)
    if errors:
        raise ValueError(f"Invalid rubric: {'; '.join(errors)}")

    behavior_count = 0
    for step_order, step_data in enumerate(rubric, start=1):
        step = Step(
            title=step_data["title"],
            description=step_data.get("description", ""),
            target_score=step_data.get("target_score", DEFAULT_TARGET_SCORE),
            order=step_order,
        )
        db.add(step)

        for substep_order, (substep_title, behaviors) in enumerate(step_data["substeps"], start=1):
            substep = Substep(title=substep_title, order=substep_order)
            step.substeps.append(substep)

            behavior_order = 1
            for level, description in behaviors:
                for text in split_behavior_description(description):
                    substep.behaviors.append(Behavior(description=text, proficiency_level=level, order=behavior_order))
                    behavior_order += 1
                    behavior_count += 1

    db.commit()
    logger.info("Seeded default rubric: %d steps, %d behaviors", len(rubric), behavior_count)
    return behavior_count
