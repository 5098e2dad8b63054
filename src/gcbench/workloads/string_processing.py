# Copyright (c) Syntropy Systems
"""String building, splitting, regex and formatting workloads."""
from __future__ import annotations

import io
import re
import sys
from datetime import datetime
from typing import ClassVar

from gcbench.workloads.base import BenchmarkBase, Blackhole, benchmark

BASE_STRING = "The quick brown fox jumps over the lazy dog. "
WORDS = (
    "performance", "benchmark", "garbage", "collection", "memory", "allocation",
    "string", "processing", "concatenation", "manipulation", "optimization",
    "efficiency", "throughput", "latency", "scalability", "reliability",
)

_SHORT_WORD = re.compile(r"\b\w{1,3}\b")
_WHITESPACE = re.compile(r"\s+")
_VOWEL = re.compile(r"[aeiou]")
_DIGITS = re.compile(r"\d+")


class StringProcessingBenchmark(BenchmarkBase):
    DEFAULT_ITERATIONS: ClassVar[int] = 10_000
    DEFAULT_TARGET_SIZE: ClassVar[int] = 10_000

    test_strings: list[str]

    def populate(self) -> None:
        rng = self.random
        self.test_strings = []
        for _ in range(self.target_size):
            word_count = rng.randrange(10) + 5
            self.test_strings.append(" ".join(rng.choice(WORDS) for _ in range(word_count)))

    def teardown(self) -> None:
        self.test_strings = []

    @benchmark
    def string_concatenation(self, bh: Blackhole) -> None:
        """Repeated ``+`` on a growing string."""
        with self.memory_delta("String concatenation"):
            result = ""
            for i in range(self.iterations // 10):
                result = result + BASE_STRING + str(i) + " "
            bh.consume(result)

    @benchmark
    def string_builder_operations(self, bh: Blackhole) -> None:
        with self.memory_delta("StringBuilder operations"):
            buf = io.StringIO()
            for i in range(self.iterations):
                buf.write(BASE_STRING)
                buf.write(str(i))
                buf.write(" ")
            bh.consume(buf.getvalue())

    @benchmark
    def string_split_and_join(self, bh: Blackhole) -> None:
        with self.memory_delta("String split/join"):
            processed = []
            for text in self.test_strings:
                words = [word.upper() + "_processed" for word in text.split(" ")]
                processed.append("-".join(words))
            bh.consume(processed)

    @benchmark
    def regex_and_replacement(self, bh: Blackhole) -> None:
        with self.memory_delta("Regex operations"):
            processed = []
            for text in self.test_strings:
                text = _SHORT_WORD.sub("***", text)
                text = _WHITESPACE.sub("_", text)
                text = _VOWEL.sub("@", text)
                processed.append(text.lower())
            bh.consume(processed)

    @benchmark
    def string_interning_operations(self, bh: Blackhole) -> None:
        with self.memory_delta("String interning"):
            unique: set[str] = set()
            interned: list[str] = []
            for i in range(self.iterations):
                # Build a fresh, equal-but-not-identical copy
                duplicate = "".join(list(WORDS[i % len(WORDS)]))
                unique.add(duplicate)
                interned.append(sys.intern(duplicate))
            bh.consume(unique)
            bh.consume(interned)

    @benchmark
    def substring_operations(self, bh: Blackhole) -> None:
        with self.memory_delta("Substring operations"):
            substrings = []
            for text in self.test_strings:
                length = len(text)
                if length > 10:
                    substrings.append(text[:5])
                    substrings.append(text[length // 4 : 3 * length // 4])
                    substrings.append(text[-5:])
            bh.consume(substrings)

    @benchmark
    def string_formatting_operations(self, bh: Blackhole) -> None:
        with self.memory_delta("String formatting"):
            rng = self.random
            formatted = []
            for i in range(self.iterations):
                now = datetime.now()
                word = WORDS[i % len(WORDS)]
                formatted.append("Item %d: %s (%.2f%%)" % (i, word, rng.random() * 100))
                formatted.append(
                    f"Date: {now:%Y-%m-%d}, Time: {now:%H:%M:%S}, "
                    f"Value: {rng.randrange(1_000_000):,}"
                )
                formatted.append(
                    f"Padded: |{word:>10}| |{WORDS[(i + 1) % len(WORDS)]:<10}| |{i:010d}|"
                )
            bh.consume(formatted)

    @benchmark
    def high_memory_pressure_string_ops(self, bh: Blackhole) -> None:
        """Large strings transformed repeatedly with periodic removal."""
        with self.memory_delta("High pressure string ops"):
            self.create_memory_pressure(100)
            rng = self.random
            massive: list[str] = []

            for i in range(self.iterations // 10):
                parts = []
                for j in range(100):
                    parts.append(
                        f"{BASE_STRING} Iteration: {i}_{j} Random: {rng.randrange(10000)} "
                    )
                large = "".join(parts)
                processed = _DIGITS.sub("NUM", large.upper().replace("THE", "***"))
                massive.append(processed)

                if i > 0 and i % 20 == 0 and massive:
                    massive.pop(rng.randrange(len(massive)))

            combined = "\n".join(massive[:10])
            bh.consume(massive)
            bh.consume(combined)
