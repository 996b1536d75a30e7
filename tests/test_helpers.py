"""Fakes and fixture data shared by the test modules."""

import asyncio
import re
from typing import Callable, Optional, Union

from modification_service.errors import CacheBackendError, ReasoningServiceError

# Markers identifying which prompt family a reasoning call belongs to
CLASSIFY = "triaging change requests"
RELEVANCE = "deciding whether one file must change"
NODE_EDIT = "making minimal, surgical edits"
FULL_FILE = "Return the complete updated file"
COMPONENT = "Objective: Write one new"
ROUTES = "maintaining the application router"

Reply = Union[str, Callable[[str], str], Exception]


class ScriptedReasoningService:
    """Answers each prompt with the first rule whose marker occurs in it."""

    def __init__(self, rules: Optional[list[tuple[str, Reply]]] = None, delay: float = 0.0):
        self.rules = list(rules or [])
        self.delay = delay
        self.prompts: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def calls_for(self, marker: str) -> list[str]:
        return [p for p in self.prompts if marker in p]

    async def complete(self, prompt_text: str, max_output_size: int, temperature: float) -> str:
        self.prompts.append(prompt_text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            for marker, reply in self.rules:
                if marker in prompt_text:
                    if isinstance(reply, Exception):
                        raise reply
                    return reply(prompt_text) if callable(reply) else reply
            raise ReasoningServiceError("no scripted reply")
        finally:
            self.in_flight -= 1


class FailingReasoningService:
    def __init__(self):
        self.calls = 0

    async def complete(self, prompt_text: str, max_output_size: int, temperature: float) -> str:
        self.calls += 1
        raise ReasoningServiceError("connection refused")


class InMemoryCache:
    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key):
        return self.data.get(key)

    async def set_with_ttl(self, key, value, ttl):
        self.data[key] = value
        self.ttls[key] = ttl

    async def exists(self, key):
        return key in self.data

    async def delete(self, key):
        self.data.pop(key, None)
        self.ttls.pop(key, None)


class FailingCache:
    async def get(self, key):
        raise CacheBackendError("redis down")

    async def set_with_ttl(self, key, value, ttl):
        raise CacheBackendError("redis down")

    async def exists(self, key):
        raise CacheBackendError("redis down")

    async def delete(self, key):
        raise CacheBackendError("redis down")


APP_TSX = """import React from 'react';
import { BrowserRouter, Routes, Route } from 'react-router-dom';
import Home from './pages/Home';
import Signup from './components/Signup';

function App() {
  return (
    <BrowserRouter>
      <Routes>
        <Route path="/" element={<Home />} />
        <Route path="/signup" element={<Signup />} />
      </Routes>
    </BrowserRouter>
  );
}

export default App;
"""

HOME_TSX = """import React from 'react';

export default function Home() {
  return (
    <main className="p-8">
      <h1 className="text-2xl">Welcome</h1>
    </main>
  );
}
"""

SIGNUP_TSX = """import React from 'react';

export default function Signup() {
  return (
    <form className="signup">
      <h2>Create account</h2>
      <button className="bg-blue-500 text-white">Sign up</button>
    </form>
  );
}
"""

INDEX_CSS = """body {
  margin: 0;
}
"""

PACKAGE_JSON = """{
  "name": "sample-app",
  "private": true
}
"""

PROJECT_FILES = {
    "src/App.tsx": APP_TSX,
    "src/pages/Home.tsx": HOME_TSX,
    "src/components/Signup.tsx": SIGNUP_TSX,
    "src/index.css": INDEX_CSS,
    "package.json": PACKAGE_JSON,
    "node_modules/left-pad/index.js": "module.exports = () => {};\n",
    ".cache/build.js": "console.log('cached');\n",
}




def component_reply(prompt: str) -> str:
    """Generated page whose name is taken from the component prompt."""
    name = re.search(r"named (\w+)\.", prompt).group(1)
    return (
        f"// FILE: src/pages/{name}.tsx\n"
        "```tsx\n"
        "import React from 'react';\n\n"
        f"export default function {name}() {{\n"
        "  return (\n"
        '    <main className="p-8">\n'
        f'      <h1 className="text-2xl">{name}</h1>\n'
        "    </main>\n"
        "  );\n"
        "}\n"
        "```"
    )
