"""Test lazy dict"""

import unittest

from pydantic import BaseModel, ConfigDict, field_validator

from lmagent.language_models.lazy_dict import LazyLoadingDict


# This is the class we store in the lazy dict.
class ModelClass:

    def __init__(self, model_name: str):
        self.model_name = model_name
        self.closed = False

    def info(self) -> str:
        return self.model_name

    def close(self) -> None:
        self.closed = True


# A frozen model as key, validating its field at construction.
class ModelKey(BaseModel):
    model_name: str

    model_config = ConfigDict(frozen=True)

    @field_validator('model_name')
    @classmethod
    def check_name(cls, name: str) -> str:
        if name not in ('Anthropic', 'Gemini', 'OpenAI'):
            raise ValueError(f"Invalid model: {name}")
        return name


created: list[str] = []


def create_model_instance(key: ModelKey) -> ModelClass:
    created.append(key.model_name)
    return ModelClass(model_name=key.model_name)


class TestLazyDict(unittest.TestCase):

    def setUp(self):
        created.clear()
        self.factory = LazyLoadingDict(create_model_instance)

    def test_dict(self):
        model = self.factory[ModelKey(model_name="Gemini")]
        self.assertEqual(model.info(), "Gemini")
        self.assertEqual(created, ["Gemini"])

    def test_memoized(self):
        model = self.factory[ModelKey(model_name="Gemini")]
        model2 = self.factory[ModelKey(model_name="Gemini")]
        self.assertIs(model, model2)
        self.assertEqual(created, ["Gemini"])

    def test_invalid_model(self):
        with self.assertRaises(ValueError):
            self.factory[ModelKey(model_name="OpenX")]

    def test_set_existing_key(self):
        key = ModelKey(model_name="OpenAI")
        self.factory[key] = ModelClass("custom")
        self.assertEqual(self.factory[key].info(), "custom")
        with self.assertRaises(ValueError):
            self.factory[key] = ModelClass("other")

    def test_delete_closes_value(self):
        key = ModelKey(model_name="Anthropic")
        model = self.factory[key]
        del self.factory[key]
        self.assertTrue(model.closed)
        self.assertNotIn(key, self.factory)

    def test_destructor(self):
        destroyed: list[ModelClass] = []
        factory = LazyLoadingDict(create_model_instance, destroyed.append)
        model = factory[ModelKey(model_name="OpenAI")]
        factory.clear()
        self.assertEqual(destroyed, [model])
        self.assertFalse(model.closed)


if __name__ == "__main__":
    unittest.main()
