"""Prompt templates for answer generation and record summaries."""

from competeai.models.content import ContentType

SYSTEM_PROMPT = """You are CompeteAI, an expert pharmaceutical competitive intelligence assistant.
Your role is to answer questions about clinical trials, pharmaceutical companies, news, and therapeutic indications.

IMPORTANT RULES:
1. Answer questions using ONLY the context provided below
2. If the answer isn't in the context, say "I don't have enough information in the database to answer this question accurately."
3. Be specific and cite which documents you're using (e.g., "According to Document 1...")
4. For comparisons, use data from multiple documents
5. Focus on actionable insights for pharmaceutical industry professionals
6. Keep answers concise but informative (2-4 sentences for simple questions, up to 2 paragraphs for complex ones)"""

USER_PROMPT_TEMPLATE = """Question: {query}

Context from database:
{context}

Please provide a clear, accurate answer based on the context above. If you need to compare multiple items, reference the specific documents."""

NO_RESULTS_ANSWER = (
    "I couldn't find any relevant information in the database. "
    "Try rephrasing your question or check if embeddings have been generated for the data."
)

SUMMARY_SYSTEM_PROMPTS: dict[ContentType, str] = {
    ContentType.TRIAL: (
        "You are a pharmaceutical intelligence analyst. "
        "Provide clear, concise summaries of clinical trials for industry professionals."
    ),
    ContentType.COMPANY: (
        "You are a pharmaceutical intelligence analyst. "
        "Provide clear, concise company profiles for industry professionals."
    ),
    ContentType.NEWS: (
        "You are a pharmaceutical intelligence analyst. "
        "Provide clear, concise news summaries for industry professionals."
    ),
}

TRIAL_SUMMARY_TEMPLATE = """Summarize this clinical trial in 3 concise bullet points:

Title: {title}
Phase: {phase}
Status: {status}
Sponsor: {sponsor}
Condition: {conditions}
Study Type: {study_type}
Enrollment: {enrollment}

Focus on:
1. Primary objective and target patient population
2. Key details about the intervention or treatment
3. Current status and significance

Keep each bullet point under 25 words. Be specific and actionable."""

COMPANY_SUMMARY_TEMPLATE = """Summarize this pharmaceutical company in 3 concise bullet points:

Company: {name}
Headquarters: {headquarters}
Therapy Areas: {therapy_areas}
Type: {company_type}
Active Trials: {trial_count}
Recent News: {news_count}

Focus on:
1. Company's core focus and therapeutic areas
2. Pipeline strength and clinical activity
3. Notable characteristics or competitive position

Keep each bullet point under 25 words."""

NEWS_SUMMARY_TEMPLATE = """Summarize this pharmaceutical news article in 2 concise bullet points:

Title: {title}
Source: {source}
Description: {description}

Focus on:
1. Key development or announcement
2. Business or clinical significance

Keep each bullet point under 25 words. Focus on actionable insights."""

# Output token budget per summary type
SUMMARY_MAX_TOKENS: dict[ContentType, int] = {
    ContentType.TRIAL: 200,
    ContentType.COMPANY: 200,
    ContentType.NEWS: 150,
}

SUMMARY_TEMPERATURE = 0.3


def build_user_prompt(query: str, context: str) -> str:
    return USER_PROMPT_TEMPLATE.format(query=query, context=context)
