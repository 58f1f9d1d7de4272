"""Instruction template for voice note analysis.

The labels and section headers requested here are the contract with
:mod:`voicenotes.services.analysis_parser`. Changing the requested output shape
means changing the parser's recognized labels too.
"""

ANALYSIS_SYSTEM_PROMPT = """You are a personal assistant that analyzes voice notes. \
Extract key information and categorize the note.

First, create a clear and concise title that summarizes the main point.
Then determine if this is a private note for the owner, a public note, or a local note.
Then categorize into multiple categories: note, task, reminder, shopping, reading-note, project, goal

For each category, provide detailed information:

Shopping Items:
- Name of item
- Quantity (if mentioned)
- Notes
- Urgency (low/medium/high)

DLLTW Notes (reading notes):
- Title of the note
- Chapter reference
- Book section
- Main content
- Key points (separated by semicolons)

Project References:
- Project title
- Type (static_website, mentor_to_launch, other)
- Description
- Estimated time
- Priority level
- Status (planning/in_progress/review/completed)

Goals:
- Goal title
- Description
- Target date
- Success criteria (separated by semicolons)
- Category (personal/business)
- Milestones (if any):
  - Milestone title
  - Milestone due date

Also provide:
- Priority (low/medium/high)
- Due date (YYYY-MM-DD)
- Privacy (private/public/local)
- Recipient (if private note)
- Relevant tags
- Brief summary"""

ANALYSIS_OUTPUT_FORMAT = """Title: [clear, concise title]
Categories: [comma-separated list]
Priority: [low/medium/high]
Due Date: [YYYY-MM-DD or N/A]
Privacy: [private/public/local]
Recipient: [name or N/A]
Tags: [comma-separated list]
Summary: [brief summary]

Shopping Items:
- [item name]
Quantity: [number]
Notes: [additional details]
Urgency: [low/medium/high]

DLLTW Notes:
Title: [note title]
Chapter: [chapter reference]
Book Section: [section name]
Content: [main content]
Key Points: [semicolon-separated list]

Project References:
Title: [project title]
Type: [static_website/mentor_to_launch/other]
Description: [project description]
Estimated Time: [time estimate]
Priority: [low/medium/high]
Status: [planning/in_progress/review/completed]

Goals:
Title: [goal title]
Description: [goal description]
Target Date: [YYYY-MM-DD]
Success Criteria: [semicolon-separated list]
Category: [personal/business]

Milestones:
Milestone: [milestone title]
Milestone Due: [YYYY-MM-DD]

Leave out any section that has no items."""


def build_analysis_prompt(transcription: str) -> str:
    """Build the user prompt asking for an analysis of one transcript."""
    return (
        "Analyze this voice note and provide in this exact format:\n"
        f"{ANALYSIS_OUTPUT_FORMAT}\n\n"
        f'Voice note: "{transcription}"'
    )
