import pytest

from studyhub.content import ContentAnalysisEngine
from studyhub.dashboard import Dashboard
from studyhub.errors import InvalidState
from studyhub.flashcards import FlashcardSessionEngine
from studyhub.models import ModuleType, SourceInput
from studyhub.speaking import SpeakingSessionEngine
from studyhub.writing import WritingEngine


@pytest.fixture()
def dashboard(client, progress):
	return Dashboard(client, progress)


def test_starts_on_dashboard(dashboard):
	assert dashboard.module == ModuleType.DASHBOARD
	assert dashboard.engine is None
	assert dashboard.stats().xp == 0


def test_open_returns_matching_engine(dashboard):
	assert isinstance(dashboard.open(ModuleType.FLASHCARD), FlashcardSessionEngine)
	assert isinstance(dashboard.open(ModuleType.WRITING), WritingEngine)
	assert isinstance(dashboard.open(ModuleType.SPEAKING), SpeakingSessionEngine)
	assert isinstance(dashboard.open(ModuleType.MINDMAP), ContentAnalysisEngine)


def test_same_module_keeps_session(dashboard):
	first = dashboard.open(ModuleType.FLASHCARD)
	assert dashboard.open("FLASHCARD") is first


def test_leaving_a_tool_discards_its_session(dashboard):
	speaking = dashboard.open(ModuleType.SPEAKING)
	speaking.start_recording()
	dashboard.switch(ModuleType.DASHBOARD)
	assert speaking.recording is None
	assert not speaking.capture.recording
	assert dashboard.open(ModuleType.SPEAKING) is not speaking


def test_dashboard_is_not_a_tool(dashboard):
	engine = dashboard.open(ModuleType.WRITING)
	with pytest.raises(InvalidState):
		dashboard.open(ModuleType.DASHBOARD)
	assert dashboard.engine is engine


async def test_xp_flows_into_shared_progress(script, dashboard):
	script.queue(
		{
			"score": 7,
			"vocabScore": 7,
			"grammarScore": 7,
			"coherenceScore": 7,
			"feedback": "ok",
			"correctedText": "ok",
			"mistakes": [],
		}
	)
	await dashboard.open(ModuleType.WRITING).analyze(SourceInput(kind="text", text="A long enough paragraph."))
	dashboard.switch(ModuleType.DASHBOARD)
	assert dashboard.stats().xp == 20


def test_current_never_switches(dashboard):
	deck = dashboard.open(ModuleType.FLASHCARD)
	assert dashboard.current(ModuleType.WRITING) is None
	assert dashboard.current(ModuleType.FLASHCARD) is deck
	assert isinstance(dashboard.blank(ModuleType.WRITING), WritingEngine)
	assert dashboard.module == ModuleType.FLASHCARD
	assert dashboard.engine is deck
