# daily_challenge/prompts.py

from typing import Dict, List, Optional

from .schemas import Difficulty

SYSTEM_PROMPT = (
    "You design short code-editing puzzles for people practicing Vim motions."
    " You answer with a single JSON object and nothing else."
)

# ====== Per-difficulty requirements ======
DIFFICULTY_REQUIREMENTS: Dict[Difficulty, List[str]] = {
    Difficulty.EASY: [
        "3-5 lines of JavaScript/TypeScript code",
        "Basic syntax only (variables, simple functions, basic loops)",
        "Create starting code with 1-2 simple differences from target",
        "Differences should be: variable names, string values, or simple operators",
        "Clear, readable code that a beginner would understand",
        "No complex algorithms or data structures",
    ],
    Difficulty.MEDIUM: [
        "6-10 lines of JavaScript/TypeScript code",
        "Intermediate concepts (objects, arrays, conditionals, loops)",
        "Create starting code with 2-4 moderate differences from target",
        "Differences should be: function parameters, array/object properties, conditional operators, method names",
        "Moderately complex logic but still readable",
        "May include simple algorithms or data manipulation",
    ],
    Difficulty.HARD: [
        "8-15 lines of JavaScript/TypeScript code",
        "Advanced concepts (recursion, closures, complex data structures)",
        "Create starting code with 3-6 challenging differences from target",
        "Differences should be: method names, recursive base cases, data structure operations, algorithm logic",
        "Challenging logic that requires careful editing and multiple vim commands",
        "May include algorithms, design patterns, or complex functions",
    ],
}

DIFFICULTY_WORDING: Dict[Difficulty, str] = {
    Difficulty.EASY: "a simple",
    Difficulty.MEDIUM: "an intermediate",
    Difficulty.HARD: "an advanced",
}

EDITING_RULES = """
IMPORTANT EDITING CHALLENGE RULES:
- startingContent is a realistic "before" version with intentional differences
- content is the "after" version that users need to reach
- Focus on differences that require vim motions and editing commands
- Both versions must be syntactically valid JavaScript/TypeScript with balanced brackets
- Never use eval, Function(), DOM/window/process access, imports, network or storage APIs, dialogs, prototypes or constructors
- The editing should feel natural, like fixing bugs or refactoring code

Examples of good editing differences:
- Variable name changes (firstName -> fullName)
- String value changes ("Hello" -> "Welcome")
- Function parameter changes (x, y -> width, height)
- Operator changes (=== -> !==, && -> ||)
- Method name changes (.map -> .filter, .push -> .unshift)
- Property name changes (user.name -> user.displayName)
""".strip()

JSON_RESPONSE_FORMAT = """{
  "startingContent": "the incomplete/incorrect code that users start with",
  "content": "the final correct code that users should match",
  "title": "descriptive title starting with the language/concept (5-100 characters)",
  "explanation": "brief explanation of the editing challenge (max 500 characters)"
}"""

_RETURN_MARKER = "Return ONLY a JSON response"


def build_prompt(difficulty: Difficulty) -> str:
    requirements = "\n".join(f"- {req}" for req in DIFFICULTY_REQUIREMENTS[difficulty])
    audience = " for beginners" if difficulty == Difficulty.EASY else ""
    return f"""
Generate {DIFFICULTY_WORDING[difficulty]} Vim editing practice challenge{audience}.

This is an EDITING challenge: users start with incomplete/incorrect code and edit it to match the target.

Requirements:
{requirements}

{EDITING_RULES}

{_RETURN_MARKER} in this exact format:
{JSON_RESPONSE_FORMAT}
""".strip()


PROMPT_TEMPLATES: Dict[Difficulty, str] = {d: build_prompt(d) for d in Difficulty}


def build_custom_prompt(
    difficulty: Difficulty,
    context: Optional[str] = None,
    language: Optional[str] = None,
    extra_requirements: Optional[List[str]] = None,
) -> str:
    """Template for the difficulty, narrowed to one language and extended with extra context/requirements."""
    prompt = PROMPT_TEMPLATES[difficulty]

    if language in ("javascript", "typescript"):
        prompt = prompt.replace(
            "JavaScript/TypeScript",
            "JavaScript" if language == "javascript" else "TypeScript",
        )

    if extra_requirements:
        extra = "\n".join(f"- {req}" for req in extra_requirements)
        prompt = prompt.replace(_RETURN_MARKER, f"{extra}\n\n{_RETURN_MARKER}", 1)

    if context:
        prompt = f"{context.strip()}\n\n{prompt}"

    return prompt


def build_messages(prompt: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]
