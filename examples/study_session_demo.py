"""
Study session walkthrough: Session → Emotions → Adaptive Content → Quiz → Battle

Demonstrates end-to-end integration of all engine components:
1. Sign in and choose a learning style
2. Start a study session with simulated emotion detection
3. Fetch adaptive content and recommendations
4. Take a quiz that reports into the session
5. End the session and check the streak
6. Play a two-player quiz battle
"""

import random
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.agents.affect_simulator import SimulatedAffectSensor
from src.collaborators import StaticAuthProvider
from src.config import config
from src.models.user import User
from src.orchestrator import LearningCompanion
from src.utils.log import setup_logging


def main():
    setup_logging(config.logging.log_level, json_logs=config.logging.json_logs)
    rng = random.Random(7)

    # ==================== Step 1: Sign In ====================
    print("=" * 60)
    print("STEP 1: Signing In")
    print("=" * 60)

    alice = User(id="u-alice", display_name="Alice Johnson")
    auth = StaticAuthProvider(alice)
    sensor = SimulatedAffectSensor(seed=7)
    companion = LearningCompanion.from_config(auth, sensor=sensor)

    profile = companion.sessions.set_learning_style("visual")
    print(f"✓ Signed in: {alice.display_name} (ID: {alice.id})")
    print(f"  Learning style: {profile.modality}, difficulty: {profile.difficulty}")
    print()

    # ==================== Step 2: Study Session ====================
    print("=" * 60)
    print("STEP 2: Study Session")
    print("=" * 60)

    if not companion.set_emotion_detection(True):
        print(f"⚠ Emotion detection unavailable: {companion.emotion.permission_error}")

    session = companion.sessions.start_session("Algebra")
    for sample in sensor.emit_many(3):
        print(f"  Emotion: {sample.label.value} ({sample.confidence:.2f})")
    companion.sessions.log_activity("topic", {"name": "Linear equations"})
    companion.sessions.log_activity("study", {"duration": 20})
    print(f"✓ Session {session.id} on '{session.topic}'")
    print()

    # ==================== Step 3: Adaptive Content ====================
    print("=" * 60)
    print("STEP 3: Adaptive Content")
    print("=" * 60)

    plan = companion.sessions.get_adaptive_content()
    print(f"Primary: {plan.primary}, secondary: {plan.secondary}")
    for element in plan.elements:
        print(f"  - [{element.type}] {element.title}")

    advice = companion.sessions.get_recommendations()
    print(f"\n{advice.message}")
    for action in advice.actions:
        print(f"  → {action.label}")
    print()

    # ==================== Step 4: Quiz ====================
    print("=" * 60)
    print("STEP 4: Quiz")
    print("=" * 60)

    quiz = companion.quizzes.generate("Algebra", "medium", 5)
    result = None
    while result is None:
        question = companion.quizzes.current_question
        choice = rng.choice(question.answer_ids)
        print(f"Q: {question.text} → {choice}")
        result = companion.quizzes.answer(choice)

    print(f"\n✓ Quiz {quiz.id}: {result.correct_answers}/{result.total_questions} ({result.score:.0f}%)")
    print()

    # ==================== Step 5: End Session ====================
    print("=" * 60)
    print("STEP 5: End Session")
    print("=" * 60)

    ended = companion.sessions.end_session()
    stats = companion.sessions.stats
    print(f"✓ Session ended after {ended.duration_minutes} minute(s)")
    print(f"  Quizzes taken: {stats.quizzes_taken}, accuracy: {stats.accuracy:.1f}%")
    print(f"  Study streak: {companion.sessions.streak.count} day(s)")
    print()

    # ==================== Step 6: Quiz Battle ====================
    print("=" * 60)
    print("STEP 6: Quiz Battle")
    print("=" * 60)

    bob = User(id="u-bob", display_name="Bob")
    battle = companion.battles.create("Algebra", "easy", max_participants=2)

    auth.sign_in(bob)
    companion.battles.join(battle.id)
    auth.sign_in(alice)
    companion.battles.start(battle.id)

    for player in (alice, bob):
        auth.sign_in(player)
        outcome = None
        while outcome is None:
            question = companion.battles.current_question(battle.id)
            outcome = companion.battles.answer(battle.id, rng.choice(question.answer_ids))
        print(f"  {player.display_name}: {outcome.score:.0f}%")

    finished = companion.battles.get(battle.id)
    print(f"✓ Battle {finished.id} {finished.status.value}, winner: {finished.winner.user_id}")
    auth.sign_in(alice)

    # ==================== Summary ====================
    print()
    print("=" * 60)
    print("LEARNER SUMMARY")
    print("=" * 60)
    summary = companion.get_learner_summary()
    print(f"Sessions: {summary['session_count']}, streak: {summary['streak']['count']}")
    print(f"Quiz scores: {summary['quiz_scores']}")
    print(f"Score histogram: {summary['score_histogram']}")
    print(f"Recent emotions: {summary['recent_emotions']} (confidence {summary['emotion_confidence']:.2f})")


if __name__ == "__main__":
    main()
