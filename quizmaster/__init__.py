"""QuizMaster: PDF topics, quizzes and weak-area analysis backed by LLM APIs."""
