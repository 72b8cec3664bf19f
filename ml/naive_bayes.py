# ml/naive_bayes.py

import logging
import re
from typing import Mapping, Optional, Union

import numpy as np
from sklearn.feature_extraction.text import CountVectorizer

from config import TRAINING_CSV_SOURCE, TRIAGE_LABEL_COLUMN
from ml.preprocess import extract_features, parse_csv_line
from resources import ResourceLoadError, load_text
from shared_types import Prediction, TicketForm, TrainingResult, TriageClass

logger = logging.getLogger(__name__)

CLASSES = tuple(c.value for c in TriageClass)

# Normalized CSV header -> feature field
_HEADER_FIELDS = {
    "summary": "summary",
    "description": "description",
    "component": "component",
    "components": "component",
    "environment": "environment",
    "issuetype": "issue_type",
    "type": "issue_type",
    "priority": "priority",
}


class NotTrainedError(RuntimeError):
    pass


def _normalize_header(header: str) -> str:
    return re.sub(r"[^a-z]", "", header.lower())


def form_to_fields(form: TicketForm) -> dict[str, Optional[str]]:
    return {
        "summary": None,
        "description": form.description,
        "component": form.project,
        "environment": None,
        "issue_type": form.ticket_type.value if form.ticket_type else None,
        "priority": form.severity.value if form.severity else None,
    }


class NaiveBayesClassifier:
    """
    Bag-of-words naive Bayes over the three triage classes.

    Likelihoods are Laplace smoothed as (count + 1) / (class_doc_count + |V|),
    i.e. normalized by the number of documents in the class rather than the
    number of feature occurrences.
    """

    def __init__(self, source: str = TRAINING_CSV_SOURCE):
        self.source = source
        self.classes = CLASSES
        self.reset()

    def reset(self) -> None:
        self._vectorizer: Optional[CountVectorizer] = None
        self.vocabulary: dict[str, int] = {}
        self.class_word_counts = np.zeros((len(self.classes), 0), dtype=np.int64)
        self.class_doc_counts = np.zeros(len(self.classes), dtype=np.int64)
        self.total_docs = 0
        self.is_trained = False

    async def train(self, source: Optional[str] = None) -> TrainingResult:
        source = source or self.source
        logger.info(f"Loading training data from {source}...")
        try:
            csv_text = await load_text(source)
            result = self.train_from_text(csv_text)
        except (ResourceLoadError, ValueError) as e:
            logger.error(f"Training failed: {e}")
            return TrainingResult(success=False, error=str(e))

        logger.info(
            f"Training completed: {result.total_docs} documents, "
            f"{result.vocabulary_size} features"
        )
        return result

    def train_from_text(self, csv_text: str) -> TrainingResult:
        """Fit on CSV text. Replaces any previous state. Raises ValueError on an unusable corpus."""
        self.reset()

        lines = csv_text.split("\n")
        headers = [h.strip() for h in lines[0].split(",")]
        if TRIAGE_LABEL_COLUMN not in headers:
            raise ValueError(f"Training data has no '{TRIAGE_LABEL_COLUMN}' column")

        documents = []
        labels = []
        for line in lines[1:]:
            line = line.strip()
            if not line:
                continue

            values = parse_csv_line(line)
            if len(values) < len(headers):
                continue

            row = {header: values[i].strip() for i, header in enumerate(headers)}
            label = row[TRIAGE_LABEL_COLUMN]
            if label not in self.classes:
                continue

            fields = {}
            for header, value in row.items():
                name = _HEADER_FIELDS.get(_normalize_header(header))
                if name and name not in fields:
                    fields[name] = value
            documents.append(fields)
            labels.append(self.classes.index(label))

        if not documents:
            raise ValueError("No labeled rows found in training data")

        vectorizer = CountVectorizer(analyzer=extract_features)
        X = vectorizer.fit_transform(documents)
        y = np.array(labels)

        word_counts = np.zeros((len(self.classes), X.shape[1]), dtype=np.int64)
        for idx in range(len(self.classes)):
            mask = y == idx
            if mask.any():
                word_counts[idx] = np.asarray(X[mask].sum(axis=0)).ravel()

        self._vectorizer = vectorizer
        self.vocabulary = dict(vectorizer.vocabulary_)
        self.class_word_counts = word_counts
        self.class_doc_counts = np.bincount(y, minlength=len(self.classes))
        self.total_docs = len(documents)
        self.is_trained = True

        return TrainingResult(
            success=True,
            total_docs=self.total_docs,
            vocabulary_size=len(self.vocabulary),
            class_distribution=self._class_distribution(),
        )

    def calculate_log_probabilities(self, features: list[str]) -> np.ndarray:
        known = [self.vocabulary[f] for f in features if f in self.vocabulary]
        unknown = len(features) - len(known)

        doc_counts = self.class_doc_counts.astype(float)
        denominators = doc_counts + len(self.vocabulary)

        with np.errstate(divide="ignore"):
            log_prior = np.log(doc_counts / self.total_docs)
            log_likelihood = np.log(
                (self.class_word_counts[:, known] + 1) / denominators[:, None]
            ).sum(axis=1)
            log_likelihood += unknown * np.log(1.0 / denominators)

        return log_prior + log_likelihood

    def predict(self, ticket: Union[TicketForm, Mapping[str, Optional[str]]]) -> Prediction:
        if not self.is_trained:
            raise NotTrainedError("Model not trained. Call train() first.")

        fields = form_to_fields(ticket) if isinstance(ticket, TicketForm) else ticket
        log_probs = self.calculate_log_probabilities(extract_features(fields))

        best = 0
        for idx in range(1, len(self.classes)):
            if log_probs[idx] > log_probs[best]:
                best = idx

        # Confidence is normalized in the linear domain, separately from the
        # argmax above; very negative log-probabilities underflow to 0 here.
        with np.errstate(invalid="ignore", under="ignore"):
            exp_probs = np.exp(log_probs)
            confidence = exp_probs[best] / exp_probs.sum()

        return Prediction(
            predicted_class=TriageClass(self.classes[best]),
            confidence=float(confidence),
            probabilities={c: float(p) for c, p in zip(self.classes, exp_probs)},
            log_probabilities={c: float(p) for c, p in zip(self.classes, log_probs)},
        )

    def get_model_stats(self) -> dict:
        if not self.is_trained:
            return {"error": "Model not trained"}

        return {
            "is_trained": self.is_trained,
            "total_docs": self.total_docs,
            "vocabulary_size": len(self.vocabulary),
            "classes": list(self.classes),
            "class_distribution": self._class_distribution(),
            "class_probabilities": {
                c: int(n) / self.total_docs for c, n in zip(self.classes, self.class_doc_counts)
            },
        }

    def _class_distribution(self) -> dict[str, int]:
        return {c: int(n) for c, n in zip(self.classes, self.class_doc_counts)}
