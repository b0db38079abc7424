"""Prompt templates for summarization."""

SUMMARY_SYSTEM = "You are a helpful assistant that summarizes meeting transcripts."

CHUNK_PROMPT = """Summarize the following meeting transcript section, focusing on key points and next steps:

{chunk}"""

AGGREGATE_PROMPT = """Summarize the following meeting transcript into two parts:
1. Key Points: List the main points discussed
2. Next Steps: List any action items or next steps mentioned

If no next steps are mentioned, omit that section. Focus only on actionable and insightful content.

Format the answer exactly as:

Key Points:
- ...

Next Steps:
- ...

Transcript:
{partials}"""

AGGREGATE_PROMPT_JSON = """Summarize the following meeting transcript into two parts:
1. key_points: the main points discussed, as a bulleted list in one string
2. next_steps: any action items or next steps mentioned, as a bulleted list in one string

If no next steps are mentioned, use an empty string for next_steps.
Focus only on actionable and insightful content.

Transcript:
{partials}

Output ONLY valid JSON, no markdown or commentary:
{{"key_points": "- ...", "next_steps": "- ..."}}"""

TITLE_SYSTEM = (
    "You are a helpful assistant that summarizes meeting transcripts "
    "into short, concise titles (less than 10 words)."
)

TITLE_PROMPT = 'Generate a title for the following meeting transcript, less than 10 words: "{transcript}"'
