from unittest import TestCase

from .models import Question, SelectedCategory, Session
from .projector import public_game_state, public_question


class PublicQuestionTests(TestCase):
    def setUp(self) -> None:
        self.music = Question(
            type="music",
            question="Name the song",
            answer="Bohemian Rhapsody",
            song="Bohemian Rhapsody",
            artist="Queen",
            youtube_id="fJ9rUzIMcZQ",
            accepted_answers=["Bohemian"],
        )

    def test_music_details_hidden_until_reveal(self):
        hidden = public_question(self.music, show_answer=False)
        self.assertIsNone(hidden["answer"])
        self.assertIsNone(hidden["song"])
        self.assertIsNone(hidden["artist"])
        self.assertNotIn("acceptedAnswers", hidden)
        self.assertEqual(hidden["youtubeId"], "fJ9rUzIMcZQ")
        self.assertEqual(hidden["playSeconds"], 10)

        shown = public_question(self.music, show_answer=True)
        self.assertEqual(shown["answer"], "Bohemian Rhapsody")
        self.assertEqual((shown["song"], shown["artist"]), ("Bohemian Rhapsody", "Queen"))
        self.assertEqual(shown["acceptedAnswers"], ["Bohemian"])

    def test_video_clip_details_hidden_until_reveal(self):
        video = Question(type="video", question="Who?", answer="Michael Jackson", clip_title="Thriller", clip_source="MJJ")
        hidden = public_question(video, show_answer=False)
        self.assertEqual((hidden["clipTitle"], hidden["clipSource"]), (None, None))
        shown = public_question(video, show_answer=True)
        self.assertEqual((shown["clipTitle"], shown["clipSource"]), ("Thriller", "MJJ"))

    def test_unrelated_fields_are_not_exposed(self):
        view = public_question(Question(question="Capital?", answer="Paris", image_url="x.png"), show_answer=False)
        self.assertNotIn("imageUrl", view)
        self.assertNotIn("song", view)

    def test_game_state_follows_reveal_flag(self):
        s = Session(phase="playing", current_question_index=0)
        s.selected_categories = [SelectedCategory(name="Music", questions=[self.music], suggesters=["A", "B", "C"])]

        self.assertIsNone(public_game_state(s)["currentQuestion"]["song"])
        s.show_answer = True
        self.assertEqual(public_game_state(s)["currentQuestion"]["artist"], "Queen")
