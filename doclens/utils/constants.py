"""Centralized constants: default metric values, placeholders and fixed UI lists.

Kept separate from the transformers so views and the report share the same text.
"""

# Metric defaults applied when the backend omits a value
DEFAULT_AI_CONFIDENCE = 85
DEFAULT_RISK_SCORE = 5
DEFAULT_COMPLIANCE_SCORE = 75
DEFAULT_CRITICAL_ISSUES = 0
DEFAULT_TOTAL_OBLIGATIONS = 0

# Risk score thresholds on the 0-10 scale
HIGH_RISK_MIN_SCORE = 8
LOW_RISK_MAX_SCORE = 3

RISK_HIGH = "HIGH"
RISK_MEDIUM = "MEDIUM"
RISK_LOW = "LOW"

NO_SUMMARY = "No summary available"
NO_RISK_ANALYSIS = "No risk analysis available"
NO_HIGHLIGHTS_ANALYSIS = "No highlights analysis available"
NO_CONFIDENCE_ANALYSIS = "No confidence analysis available"
DEFAULT_DOCUMENT_TYPE = "Document"

# Shown verbatim when the suggested-questions call fails
FALLBACK_QUESTIONS = [
    "What are the key obligations for each party?",
    "What are the termination conditions?",
    "How are disputes resolved?",
    "What are the liability limitations?",
    "What intellectual property rights are involved?",
    "What are the payment terms and conditions?",
]

QUICK_TOPICS = [
    "Termination Conditions",
    "Liability Limitations",
    "Intellectual Property Rights",
    "Dispute Resolution",
    "Confidentiality Clauses",
    "Payment Terms",
]

LOADING_ANSWER = "Analyzing your question..."
ANSWER_ERROR = (
    "I apologize, but I encountered an error processing your question. "
    "Please try again or rephrase your question."
)
ANSWER_CONNECTION_ERROR = (
    "I'm sorry, but I'm having trouble connecting to the analysis service. "
    "Please check your connection and try again."
)

# Messages sent as conversation context (3 question/answer pairs)
CONTEXT_MESSAGES = 6
URGENT_DEADLINE_DAYS = 7
