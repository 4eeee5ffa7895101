"""
Centralized configuration for LLM Prompts.

This module contains all system instructions and prompt templates used across the application.
Prompts are grouped by domain (Service) for better discoverability and context.
"""

class ConversationPrompts:
    """Prompts that shape a conversation's persistent history."""

    SEED_SYSTEM = "You are a helpful assistant that provides insights about YouTube videos."

    TRANSCRIPT_CONTEXT = "The following is a transcript of the video: {transcript}"

    VIDEO_LOADED = "Video loaded successfully. How can I help you with this video?"


class SummarizationPrompts:
    """System prompts for the summarization pipeline."""

    # Strategy 1: Single Pass (whole transcript in one prompt)
    SINGLE_PASS = (
        "Please summarize this video transcript: {transcript}. "
        "Only after you have fully traversed the entire transcript, answer the user's "
        "question regarding the video using parts of this: {question}."
    )

    # Strategy 2: Chunked Pass (per-chunk scaffold)
    CHUNK_LOOP_START = "Start of loop {index}"

    CHUNK_TASK = """You have been asked to extract specific information from a video transcript.
The transcript is divided into multiple chunks, and you must process each chunk individually.

Your task is to follow these steps:
- Review the chunk of the transcript and identify every concise piece of information that aligns with the given user prompt.
- Summarise all relevant information you have found in a single response.
- Use only the information found in this transcript for your response.

Because each chunk is processed on its own, provide a summary for this chunk which answers the user's question.

Your guiding rule, as defined by the user, is: {question}"""

    CHUNK_POSITION = """You are iterating over each chunk of a video transcript.
You are interpreting chunk {index} out of {total}.
You must note the information in this chunk regarding the user's prompt: ({question}).
The next message contains the chunk content."""

    CHUNK_CONTENT = "CHUNK {index}: {content}"

    CHUNK_LOOP_END = "End of loop {index}"

    FINAL_CHUNK = (
        "This is the final chunk of the entire video transcript. Please identify the last "
        "few sentences relative to all of the chunks if needed, to structure the summarisation "
        "to be as close as possible to the user's wish."
    )

    # Strategy 2: Chunked Pass (reduce phase)
    REDUCE_PHASE = """Your task is now to summarise all the relevant pieces
and append each part of the information you have found in a single response.

Listed summary information: {intermediate}
Users prompt: {question}"""


class TitlePrompts:
    """Prompts for naming saved insights."""

    BRIEF_TITLE = (
        "Create a very brief title (3-5 words) for this conversation about a video. "
        "Reply with the title only.\n\n{excerpt}"
    )


class CustomizationPrompts:
    """Fragments assembled into per-request customization instructions."""

    LENGTH = {
        "short": "Keep the answer short: at most two brief paragraphs.",
        "medium": "Keep the answer to a moderate length: a few focused paragraphs.",
        "long": "Give a long, thorough answer that covers every relevant detail.",
    }

    TONE = "Write in a {tone} tone."

    KEY_POINTS = "Include {depth} key points formatted as {format}, placed at the {position} of the answer."

    KEY_POINTS_THEME = "Focus the key points on the theme: {theme}."

    KEY_POINTS_PREFIX = 'Introduce the key points with the heading "{prefix}".'

    KEY_POINT_FORMATS = {
        "bullets": "a bulleted list",
        "numbered": "a numbered list",
        "paragraph": "a short paragraph",
    }


PRESET_QUESTIONS = (
    "What are the main arguments and how are they supported?",
    "How does this content relate to broader societal trends or academic discourse?",
    "What potential biases or limitations are present in the video's perspective?",
    "Can you provide a critical analysis of the methodology or logic used?",
    "How might the ideas presented impact future developments in this field?",
    "What ethical considerations arise from the content of this video?",
    "How does this video compare to other authoritative sources on the topic?",
    "What are the most surprising or counterintuitive points made?",
    "Can you summarize this video in the style of a famous philosopher or scientist?",
    "If this video were a movie, what genre would it be and who would star in it?",
    "What would be a funny but relevant meme to represent the main idea of this video?",
    "If the main concept of this video was a superhero, what would be its origin story and superpowers?",
)
