"""Notes engine test data

Minimal ticket records and templates shared by the test modules. Records use the same
shape as the JSON file delivered by the fetch stage."""

NOTE_TEXT = ".A release note title\n\nThe body of the release note."


def record(key, doc_type="Bug Fix", components=("oc",), doc_status="Complete", **extra):
    """Build one raw ticket record."""
    data = {
        "tracker": "Jira",
        "key": key,
        "doc_type": doc_type,
        "components": components if isinstance(components, str) else list(components),
        "doc_text": NOTE_TEXT,
        "doc_text_status": doc_status,
        "url": f"https://issues.example.org/browse/{key}",
    }
    data.update(extra)
    return data


# ===== Ticket sets =====

# A and B: one bug fix per component
TICKET_A = record("A-1", components=["oc"])
TICKET_B = record("B-1", components=["Image Registry"])
# C: documentation still in progress
TICKET_C = record("C-1", components=["oc"], doc_status="In Progress")
# D: matches two sibling component sections
TICKET_D = record("D-1", components=["oc", "Image Registry"])
# E: no release note at all
TICKET_E = record("E-1", components=["oc"], doc_text="// only a comment\n\n", doc_status=None)
# F: a feature for the shared-reference scenarios
TICKET_F = record("F-1", doc_type="Feature", components=["oc"])

BASIC_RECORDS = [TICKET_A, TICKET_B]
MIXED_RECORDS = [TICKET_A, TICKET_B, TICKET_C, TICKET_D, TICKET_E, TICKET_F]

DUPLICATE_RECORDS = [
    record("A-1", components=["oc"], docs_contact=""),
    record("A-1", components=["Image Registry"], docs_contact="writer@example.org", is_private=True),
]


# ===== Templates =====

BUG_FIX_TEMPLATE = """
chapters:
  - title: Bug fixes
    filter:
      doc_type: ["Bug Fix"]
    sections:
      - title: oc
        filter:
          component: ["oc"]
      - title: Images
        filter:
          component: ["Image Registry"]
  - title: Known issues
    filter:
      doc_type: ["Known Issue"]
"""

SHARED_TEMPLATE = """
chapters:
  - title: New features
    filter:
      doc_type: ["Feature"]
    sections:
      - ref: cli
  - title: Bug fixes
    filter:
      doc_type: ["Bug Fix"]
    sections:
      - ref: cli
sections:
  - name: cli
    title: Command line
    filter:
      component: ["oc"]
"""

NESTED_SHARED_TEMPLATE = """
chapters:
  - title: Bug fixes
    filter:
      doc_type: ["Bug Fix"]
    sections:
      - ref: platform
sections:
  - name: platform
    title: Platform
    sections:
      - title: Command line
        filter:
          component: ["oc"]
      - title: Registry
        filter:
          component: ["Image Registry"]
"""

CYCLE_TEMPLATE = """
chapters:
  - title: Everything
    sections:
      - ref: outer
sections:
  - name: outer
    title: Outer
    sections:
      - ref: inner
  - name: inner
    title: Inner
    sections:
      - ref: outer
"""

CONTAINER_ONLY_TEMPLATE = """
chapters:
  - title: Bug fixes
    filter:
      doc_type: ["Bug Fix"]
    sections:
      - title: Networking
        filter:
          component: ["Networking"]
"""

INVALID_TEMPLATE = """
chapters:
  - title: Bug fixes
    filter:
      team: ["core"]
  - intro_abstract: No title here
    filter:
      doc_type: ["Known Issue"]
  - title: Empty section
  - title: Dangling
    sections:
      - ref: missing
"""

# A chapter whose slug equals the default appendix file name
APPENDIX_TITLE_TEMPLATE = """
chapters:
  - title: List of tickets by component
    filter:
      doc_type: ["Bug Fix"]
"""
