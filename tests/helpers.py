"""Fake agents and sample data shared by the tests."""
from typing import List

from extraction.agents import ChunkAnalysisAgent, SynthesisAgent, OutlineAgent
from extraction.llm_client import ExtractionError
from extraction.models import ChunkAnalysis, StoryBible, Character
from structure.models import OutlineSkeleton


def make_text(word_count: int) -> str:
    """Numbered words so chunk boundaries are easy to check."""
    return " ".join(f"w{i}" for i in range(1, word_count + 1))


def make_bible(**overrides) -> StoryBible:
    data = dict(
        ten_truyen="The Salt Road",
        the_loai=["fantasy", "adventure"],
        boi_canh="A desert empire built on salt trade",
        nhan_vat=[Character(ten="Lan", vai_tro="protagonist", mo_ta="A young caravan guard")],
        chu_de=["loyalty"],
        cot_truyen_tong_quat="Lan escorts a caravan across the desert and uncovers a conspiracy."
    )
    data.update(overrides)
    return StoryBible(**data)


def make_outline_dict(chapters: int = 2, parts: int = 2, sections: int = 2) -> dict:
    return {
        "chuong": [
            {
                "so_chuong": c,
                "ten_chuong": f"Chapter title {c}",
                "tom_tat_chuong": f"Chapter summary {c}",
                "phan": [
                    {
                        "so_phan": p,
                        "tom_tat_phan": f"Part summary {c}.{p}",
                        "muc": [
                            {"so_muc": s, "tom_tat_muc": f"Section summary {c}.{p}.{s}"}
                            for s in range(1, sections + 1)
                        ]
                    }
                    for p in range(1, parts + 1)
                ]
            }
            for c in range(1, chapters + 1)
        ]
    }


class FakeAnalyzer(ChunkAnalysisAgent):
    """Records calls; fails for chunk ids listed in ``fail_on``."""

    def __init__(self, fail_on=None, message="timeout"):
        self.fail_on = set(fail_on or [])
        self.message = message
        self.calls: List[int] = []

    def analyze_chunk(self, chunk_text: str, chunk_id: int) -> ChunkAnalysis:
        self.calls.append(chunk_id)
        if chunk_id in self.fail_on:
            raise ExtractionError(self.message)
        return ChunkAnalysis(
            chunk_id=chunk_id,
            summary=f"Summary of chunk {chunk_id}",
            key_points=[f"point {chunk_id}"],
            entities=["Lan", f"Place{chunk_id}"],
            notes="tense"
        )


class FakeSynthesizer(SynthesisAgent):
    """Records the analyses it receives; fails while ``fail`` is set."""

    def __init__(self, fail=False, message="model overloaded"):
        self.fail = fail
        self.message = message
        self.calls: List[List[ChunkAnalysis]] = []

    def synthesize(self, analyses: List[ChunkAnalysis]) -> StoryBible:
        self.calls.append(list(analyses))
        if self.fail:
            raise ExtractionError(self.message)
        return make_bible()


class FakeOutlineAgent(OutlineAgent):
    def __init__(self, outline=None):
        self.outline = outline or make_outline_dict()

    def generate_outline(self, bible: StoryBible) -> OutlineSkeleton:
        return OutlineSkeleton.model_validate(self.outline)

