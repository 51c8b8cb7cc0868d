from study_scheduler.quiz.question_picker import BankQuestionPicker, QuestionPicker, choose_question

__all__ = ["BankQuestionPicker", "QuestionPicker", "choose_question"]
