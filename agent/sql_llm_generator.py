import json
import logging
import os
import re
from typing import Any, Dict, List, Optional
from urllib import error, request

from adapters.sql_renderer import get_sql_dialect
from utils.env_loader import load_environments

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_SQL_MODEL = "openai/gpt-4-turbo"
DEFAULT_SUGGEST_MODEL = "openai/gpt-3.5-turbo"


class LLMServiceError(RuntimeError):
    pass


def _strip_fences(text: str) -> str:
    return re.sub(r"```(?:sql|json)?", "", text, flags=re.IGNORECASE).strip()


def _extract_json_blob(text: str) -> Any:
    fenced = re.search(r"```(?:json)?\s*([\[{].*?[\]}])\s*```", text, flags=re.DOTALL | re.IGNORECASE)
    if fenced:
        return json.loads(fenced.group(1))

    inline = re.search(r"[\[{].*[\]}]", text, flags=re.DOTALL)
    if inline:
        return json.loads(inline.group(0))

    return json.loads(text)


def _dialect_name(db_type: str) -> str:
    return get_sql_dialect(db_type).display_name


def _schema_context(schema: Any) -> str:
    return json.dumps(schema, default=str)


def _call_openrouter(
    messages: List[Dict[str, str]],
    model: str,
    temperature: float,
    max_tokens: int,
) -> str:
    load_environments()
    api_key = os.getenv("OPENROUTER_API_KEY")
    base_url = os.getenv("OPENROUTER_BASE_URL", DEFAULT_BASE_URL)
    timeout_sec = float(os.getenv("LLM_TIMEOUT_SEC", "30"))
    if not api_key:
        raise LLMServiceError("OPENROUTER_API_KEY is required")

    payload = json.dumps(
        {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
    ).encode("utf-8")

    req = request.Request(
        url=f"{base_url.rstrip('/')}/chat/completions",
        data=payload,
        headers={
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": os.getenv("APP_REFERER", "https://querymind-ai.com"),
            "X-Title": os.getenv("APP_TITLE", "QueryMind AI"),
        },
        method="POST",
    )

    try:
        with request.urlopen(req, timeout=timeout_sec) as resp:
            body = json.loads(resp.read().decode("utf-8"))
    except (error.URLError, TimeoutError, json.JSONDecodeError) as exc:
        logger.error("OpenRouter request failed: %s", exc)
        raise LLMServiceError(f"Language model request failed: {exc}") from exc

    try:
        text = str(body["choices"][0]["message"]["content"] or "").strip()
    except (KeyError, IndexError, TypeError) as exc:
        raise LLMServiceError(f"Unexpected language model response: {body.get('error') or body}") from exc
    if not text:
        raise LLMServiceError("Language model returned an empty response")
    return text


def translate_to_sql(natural_language: str, schema: Any, db_type: str, language: Optional[str] = "en") -> str:
    dialect = _dialect_name(db_type)
    system_prompt = (
        "You are an expert SQL query generator. Convert natural language queries to SQL.\n"
        f"Database Type: {dialect}\n"
        f"Schema: {_schema_context(schema)}\n"
        f"User Language: {language or 'en'}\n"
        "\n"
        "Rules:\n"
        f"1. Generate ONLY valid SQL queries for {dialect}\n"
        "2. Use proper table and column names from the schema\n"
        "3. Include appropriate WHERE, JOIN, ORDER BY clauses as needed\n"
        "4. Optimize for performance\n"
        "5. Return ONLY the SQL query, no explanations\n"
        "6. Support multi-language input (English, Hindi, Hinglish, Spanish, French, Chinese)"
    )
    text = _call_openrouter(
        [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": natural_language},
        ],
        model=os.getenv("SQL_MODEL", DEFAULT_SQL_MODEL),
        temperature=0.3,
        max_tokens=500,
    )
    sql = _strip_fences(text)
    if not sql:
        raise LLMServiceError("Language model response did not contain SQL")
    return sql


def optimize_sql(sql_query: str, db_type: str) -> Dict[str, Any]:
    dialect = _dialect_name(db_type)
    system_prompt = (
        f"You are a SQL optimization expert for {dialect}.\n"
        "Analyze the given SQL query and provide:\n"
        "1. Optimized version of the query\n"
        "2. Brief explanation of optimizations made\n"
        "3. Performance tips\n"
        "\n"
        "Format your response as JSON:\n"
        '{"optimizedQuery": "...", "improvements": ["improvement 1", "improvement 2"], '
        '"estimatedPerformanceGain": "..."}'
    )
    text = _call_openrouter(
        [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": sql_query},
        ],
        model=os.getenv("SQL_MODEL", DEFAULT_SQL_MODEL),
        temperature=0.2,
        max_tokens=800,
    )
    try:
        parsed = _extract_json_blob(text)
    except json.JSONDecodeError as exc:
        raise LLMServiceError(f"Failed to optimize query: {exc}") from exc
    if not isinstance(parsed, dict):
        raise LLMServiceError("Failed to optimize query: expected a JSON object")

    optimized = parsed.get("optimized_query") or parsed.get("optimizedQuery")
    if not optimized:
        raise LLMServiceError("Failed to optimize query: response missing optimized query")
    improvements = parsed.get("improvements") or []
    if isinstance(improvements, str):
        improvements = [improvements]
    return {
        "optimized_query": _strip_fences(str(optimized)),
        "improvements": [str(item) for item in improvements],
        "estimated_gain": str(parsed.get("estimated_gain") or parsed.get("estimatedPerformanceGain") or ""),
    }


def suggest_improvements(sql_query: str, schema: Any, db_type: str) -> List[str]:
    dialect = _dialect_name(db_type)
    text = _call_openrouter(
        [
            {
                "role": "system",
                "content": (
                    "Suggest improvements for this SQL query based on the schema and best practices "
                    f"for {dialect}. Return 3-5 actionable suggestions as a JSON array of strings."
                ),
            },
            {"role": "user", "content": f"Query: {sql_query}\nSchema: {_schema_context(schema)}"},
        ],
        model=os.getenv("SUGGEST_MODEL", DEFAULT_SUGGEST_MODEL),
        temperature=0.4,
        max_tokens=300,
    )
    try:
        parsed = _extract_json_blob(text)
    except json.JSONDecodeError as exc:
        raise LLMServiceError(f"Failed to get suggestions: {exc}") from exc
    if isinstance(parsed, dict):
        parsed = parsed.get("suggestions")
    if not isinstance(parsed, list):
        raise LLMServiceError("Failed to get suggestions: expected a JSON array")
    return [str(item) for item in parsed]
