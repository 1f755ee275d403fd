# daily_challenge/static_pool.py

"""
Curated, pre-validated editing puzzles used whenever generation is unavailable.

Selection is index % len(bucket), with the index derived from the date hash,
so two independent calls for the same date always land on the same puzzle.
"""

import logging
from typing import Dict, List, NamedTuple, Optional

from .errors import PoolConfigurationError
from .scheduler import DateLike, challenge_index
from .schemas import (
    CONTENT_MAX_LENGTH,
    CONTENT_MIN_LENGTH,
    ChallengeContent,
    Difficulty,
    PoolValidation,
    normalize_whitespace,
)

logger = logging.getLogger(__name__)


class StaticChallenge(NamedTuple):
    starting_content: str
    content: str
    title: str


# ====== CURATED POOL ======
STATIC_CHALLENGE_POOL: Dict[Difficulty, List[StaticChallenge]] = {
    Difficulty.EASY: [
        StaticChallenge(
            'function hello() {\n  console.log("Hi, World!");\n}',
            'function hello() {\n  console.log("Hello, World!");\n}',
            "Basic Function - Hello World",
        ),
        StaticChallenge(
            "const add = (a, b) => {\n  return a - b;\n};",
            "const sum = (a, b) => {\n  return a + b;\n};",
            "Arrow Function - Sum",
        ),
        StaticChallenge(
            "for (let i = 0; i < 10; i++) {\n  console.log(i);\n}",
            "for (let i = 0; i < 5; i++) {\n  console.log(i);\n}",
            "Simple Loop",
        ),
        StaticChallenge(
            'const greeting = "Hi";\nconst user = "World";\nconsole.log(greeting + " " + user);',
            'const greeting = "Hello";\nconst name = "World";\nconsole.log(greeting + " " + name);',
            "Variables and String Concatenation",
        ),
        StaticChallenge(
            "function isOdd(num) {\n  return num % 2 === 1;\n}",
            "function isEven(num) {\n  return num % 2 === 0;\n}",
            "Simple Function - Even Check",
        ),
        StaticChallenge(
            "const nums = [1, 2, 3];\nconsole.log(nums.length);",
            "const numbers = [1, 2, 3, 4, 5];\nconsole.log(numbers.length);",
            "Array Basics",
        ),
    ],
    Difficulty.MEDIUM: [
        StaticChallenge(
            "function fib(n) {\n  if (n < 1) return n;\n  return fib(n - 1) + fib(n - 2);\n}",
            "function fibonacci(n) {\n  if (n <= 1) return n;\n  return fibonacci(n - 1) + fibonacci(n - 2);\n}",
            "Recursive Function - Fibonacci",
        ),
        StaticChallenge(
            "const factorial = (n) => {\n  if (n === 1) return 0;\n  return n * factorial(n + 1);\n};",
            "const factorial = (n) => {\n  if (n === 0) return 1;\n  return n * factorial(n - 1);\n};",
            "Recursive Function - Factorial",
        ),
        StaticChallenge(
            "function isPrime(value) {\n  if (value < 1) return true;\n  for (let i = 2; i <= value; i++) {\n"
            "    if (value % i === 0) return true;\n  }\n  return false;\n}",
            "function isPrime(num) {\n  if (num <= 1) return false;\n  for (let i = 2; i < num; i++) {\n"
            "    if (num % i === 0) return false;\n  }\n  return true;\n}",
            "Algorithm - Prime Number Check",
        ),
        StaticChallenge(
            "function findMin(arr) {\n  let min = arr[0];\n  for (let i = 0; i < arr.length; i++) {\n"
            "    if (arr[i] < min) {\n      min = arr[i];\n    }\n  }\n  return min;\n}",
            "function findMax(arr) {\n  let max = arr[0];\n  for (let i = 1; i < arr.length; i++) {\n"
            "    if (arr[i] > max) {\n      max = arr[i];\n    }\n  }\n  return max;\n}",
            "Array Processing - Find Maximum",
        ),
        StaticChallenge(
            'const person = {\n  name: "Jane",\n  age: 25,\n  greet() {\n    return `Hi, I am ${this.name}`;\n  }\n};',
            'const person = {\n  name: "John",\n  age: 30,\n  greet() {\n    return `Hello, I\'m ${this.name}`;\n  }\n};',
            "Object with Method",
        ),
        StaticChallenge(
            'function reverseString(text) {\n  let reversed = "";\n  for (let i = 0; i < text.length; i++) {\n'
            "    reversed = text[i] + reversed;\n  }\n  return reversed;\n}",
            'function reverseString(str) {\n  let reversed = "";\n  for (let i = str.length - 1; i >= 0; i--) {\n'
            "    reversed += str[i];\n  }\n  return reversed;\n}",
            "String Manipulation - Reverse",
        ),
    ],
    Difficulty.HARD: [
        StaticChallenge(
            "function quickSort(arr) {\n  if (arr.length < 1) return arr;\n  const pivot = arr[0];\n"
            "  const left = arr.filter(x => x <= pivot);\n  const right = arr.filter(x => x >= pivot);\n"
            "  return [...quickSort(right), pivot, ...quickSort(left)];\n}",
            "function quickSort(arr) {\n  if (arr.length <= 1) return arr;\n  const pivot = arr[Math.floor(arr.length / 2)];\n"
            "  const left = arr.filter(x => x < pivot);\n  const right = arr.filter(x => x > pivot);\n"
            "  return [...quickSort(left), pivot, ...quickSort(right)];\n}",
            "Algorithm - Quick Sort",
        ),
        StaticChallenge(
            "function insert(tree, key) {\n  if (!tree) return { key, left: null, right: null };\n"
            "  if (key > tree.key) {\n    tree.left = insert(tree.left, key);\n  } else {\n"
            "    tree.right = insert(tree.right, key);\n  }\n  return tree;\n}",
            "function insert(node, value) {\n  if (!node) return { value, left: null, right: null };\n"
            "  if (value < node.value) {\n    node.left = insert(node.left, value);\n  } else {\n"
            "    node.right = insert(node.right, value);\n  }\n  return node;\n}",
            "Data Structure - Binary Tree Insert",
        ),
        StaticChallenge(
            "function memoize(fn) {\n  const cache = [];\n  return function(...args) {\n    const key = args[0];\n"
            "    if (cache[key]) {\n      return cache[key];\n    }\n    return fn(...args);\n  };\n}",
            "function memoize(fn) {\n  const cache = {};\n  return function(...args) {\n    const key = JSON.stringify(args);\n"
            "    if (key in cache) {\n      return cache[key];\n    }\n    const result = fn.apply(this, args);\n"
            "    cache[key] = result;\n    return result;\n  };\n}",
            "Higher-Order Function - Memoization",
        ),
        StaticChallenge(
            "function createEmitter() {\n  const handlers = [];\n  return {\n    on(name, handler) {\n"
            "      handlers.push(handler);\n    },\n    emit(name, ...args) {\n"
            "      handlers.forEach((handler) => handler(args));\n    },\n  };\n}",
            "function createEmitter() {\n  const events = {};\n  return {\n    on(event, listener) {\n"
            "      if (!events[event]) {\n        events[event] = [];\n      }\n      events[event].push(listener);\n    },\n"
            "    emit(event, ...args) {\n      (events[event] || []).forEach((listener) => listener(...args));\n    },\n  };\n}",
            "Design Pattern - Event Emitter",
        ),
        StaticChallenge(
            "function debounce(func, delay) {\n  let timer;\n  return function debounced(...args) {\n"
            "    timer = setTimeout(() => func(...args), delay);\n  };\n}",
            "function debounce(func, wait) {\n  let timeout;\n  return function debounced(...args) {\n"
            "    const later = () => {\n      clearTimeout(timeout);\n      func(...args);\n    };\n"
            "    clearTimeout(timeout);\n    timeout = setTimeout(later, wait);\n  };\n}",
            "Utility Function - Debounce",
        ),
        StaticChallenge(
            "async function asyncReduce(array, callback, initialValue) {\n  let acc = initialValue;\n"
            "  for (const item of array) {\n    acc = callback(acc, item);\n  }\n  return acc;\n}",
            "async function asyncReduce(array, callback, initialValue) {\n  let accumulator = initialValue;\n"
            "  for (const item of array) {\n    accumulator = await callback(accumulator, item);\n  }\n  return accumulator;\n}",
            "Async Programming - Reduce",
        ),
    ],
}


class StaticFallbackPool:
    """Deterministic date -> puzzle selection over the curated pool."""

    def __init__(self, entries: Optional[Dict[Difficulty, List[StaticChallenge]]] = None):
        self.entries = STATIC_CHALLENGE_POOL if entries is None else entries

    def select(self, difficulty: Difficulty, index: int) -> ChallengeContent:
        bucket = self.entries.get(difficulty) or []
        if not bucket:
            raise PoolConfigurationError(f"No static challenges available for difficulty: {difficulty.value}")

        # Wrap around instead of failing on out-of-range indices
        entry = bucket[index % len(bucket)]
        return ChallengeContent(
            starting_content=entry.starting_content,
            content=entry.content,
            title=entry.title,
        )

    def select_for_date(self, date: DateLike, difficulty: Difficulty) -> ChallengeContent:
        return self.select(difficulty, challenge_index(date))

    def pool_size(self) -> Dict[str, object]:
        by_difficulty = {d.value: len(self.entries.get(d) or []) for d in Difficulty}
        return {"total": sum(by_difficulty.values()), "by_difficulty": by_difficulty}

    def validate_pool(self) -> PoolValidation:
        """Start-up sanity check of every curated entry."""
        errors: List[str] = []
        warnings: List[str] = []

        for difficulty in Difficulty:
            challenges = self.entries.get(difficulty) or []
            if not challenges:
                warnings.append(f"No challenges defined for difficulty: {difficulty.value}")
                continue

            for i, challenge in enumerate(challenges):
                prefix = f"{difficulty.value}[{i}]"

                if not challenge.content or not challenge.content.strip():
                    errors.append(f"{prefix}: Missing or empty content")
                if not challenge.starting_content or not challenge.starting_content.strip():
                    errors.append(f"{prefix}: Missing or empty starting content")
                if not challenge.title or not challenge.title.strip():
                    errors.append(f"{prefix}: Missing or empty title")

                if challenge.content and len(challenge.content) < CONTENT_MIN_LENGTH:
                    warnings.append(f"{prefix}: Content is very short ({len(challenge.content)} chars)")
                if challenge.content and len(challenge.content) > CONTENT_MAX_LENGTH:
                    warnings.append(f"{prefix}: Content is very long ({len(challenge.content)} chars)")

                # loose code-shape signal
                if challenge.content and "{" not in challenge.content and "=" not in challenge.content:
                    warnings.append(f"{prefix}: Content may not be valid JavaScript/TypeScript")

                if normalize_whitespace(challenge.starting_content) == normalize_whitespace(challenge.content):
                    errors.append(f"{prefix}: Starting content is identical to the target")

        result = PoolValidation(valid=not errors, errors=errors, warnings=warnings)
        if errors:
            logger.error("Static pool has %d error(s): %s", len(errors), "; ".join(errors))
        elif warnings:
            logger.warning("Static pool has %d warning(s): %s", len(warnings), "; ".join(warnings))
        return result
