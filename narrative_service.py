import logging
import os
from decimal import Decimal, ROUND_HALF_UP

from azure.ai.inference import ChatCompletionsClient
from azure.ai.inference.models import SystemMessage, UserMessage
from azure.core.credentials import AzureKeyCredential

from core_logic import STANDARD_LABEL, STACKING_LABEL

logger = logging.getLogger(__name__)

# --- CONFIGURATION: MODEL ---
# Must match the Azure AI Foundry deployment name exactly.
DEFAULT_NARRATIVE_MODEL = "Llama-3.3-70B-Instruct"
TEMPERATURE = 0.3
MAX_TOKENS = 800

FALLBACK_NARRATIVE = "Unable to generate AI analysis at this time. Please check your API key."

SYSTEM_PROMPT = "You are a senior Data Scientist who explains model evaluation results to a technical audience."

_client = None


# --- CONFIGURATION: SECRETS ---
def load_credentials():
    """
    Returns (endpoint, key).
    A local project_secrets.py wins over the environment.
    """
    try:
        import project_secrets
        return project_secrets.AZURE_AI_ENDPOINT, project_secrets.AZURE_AI_KEY
    except (ImportError, AttributeError):
        return os.environ.get("AZURE_AI_ENDPOINT"), os.environ.get("AZURE_AI_KEY")


def narrative_model():
    return os.environ.get("NARRATIVE_MODEL", DEFAULT_NARRATIVE_MODEL)


# --- CLIENT INIT ---
def get_client():
    """Builds the chat client once per process. None when no credentials are configured."""
    global _client
    if _client is not None:
        return _client

    endpoint, key = load_credentials()
    if not endpoint or not key:
        return None
    try:
        _client = ChatCompletionsClient(endpoint=endpoint, credential=AzureKeyCredential(key))
    except Exception as e:
        logger.warning("Could not initialize Azure chat client: %s", e)
        return None
    return _client


def format_percent(value):
    """0.851181 -> '85.12'. Two decimals, half-up."""
    scaled = Decimal(str(value)) * 100
    return str(scaled.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def build_prompt(config, standard, stacking):
    return f"""
    ### ROLE
    Act as a senior Data Scientist. Compare the results of two ensemble learning models I just ran a simulation for.

    ### CONFIGURATION
    - Number of Base Estimators: {config.n_estimators}
    - Noise Level: {config.noise_level} (0-1 scale)
    - Cross-Validation Folds: {config.cv_folds}
    - Dataset Size: {config.dataset_size}

    ### RESULTS
    1. {STANDARD_LABEL}:
       - Accuracy: {format_percent(standard.accuracy)}%
       - F1 Score: {format_percent(standard.f1_score)}%

    2. {STACKING_LABEL} (Meta-learner):
       - Accuracy: {format_percent(stacking.accuracy)}%
       - F1 Score: {format_percent(stacking.f1_score)}%

    ### TASK
    Explain strictly in 3 short paragraphs:
    1. A brief comparison of the performance metrics.
    2. Why Stacking likely performed better (or worse/similar) in this specific noise/complexity context. Mention how the meta-learner learns to correct the biases of base learners.
    3. A practical recommendation on when to use Stacking over simple Voting/Bagging based on these results.

    Format as Markdown. Keep it professional but accessible.
    """


# --- LLM FUNCTIONS ---
def request_narrative(config, standard, stacking, client=None, model_name=None):
    """
    Asks the hosted model to explain one run's numbers.
    Never raises: every failure is logged and turned into FALLBACK_NARRATIVE.
    """
    client = client if client is not None else get_client()
    if client is None:
        logger.warning("Narrative skipped: no Azure endpoint/key configured.")
        return FALLBACK_NARRATIVE

    prompt = build_prompt(config, standard, stacking)
    try:
        response = client.complete(
            messages=[
                SystemMessage(content=SYSTEM_PROMPT),
                UserMessage(content=prompt),
            ],
            model=model_name or narrative_model(),
            temperature=TEMPERATURE,
            max_tokens=MAX_TOKENS
        )
        text = response.choices[0].message.content
    except Exception as e:
        logger.warning("Narrative request failed (%s): %s", type(e).__name__, e)
        return FALLBACK_NARRATIVE

    if not isinstance(text, str) or not text.strip():
        logger.warning("Narrative request returned an empty or malformed response.")
        return FALLBACK_NARRATIVE
    return text
