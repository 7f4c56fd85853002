"""
Blog post fixture generator
Random but valid blog-post records shaped like the stored documents
"""

from datetime import timezone
from typing import Any, Dict, List, Optional
from faker import Faker

from tests.posts_crud.config import get_config

TITLES = [
    "Mr.", "Mrs.", "Miss", "Your Majesty", "Sir",
    "Ninja", "Master", "Professor", "Guru", "Chef",
]


class DataFactory:
    """Blog post test data generator"""

    def __init__(self, seed: Optional[int] = None):
        self.config = get_config()
        self.fake = Faker()
        seed = seed if seed is not None else self.config.faker_seed
        if seed is not None:
            self.fake.seed_instance(seed)

    def generate_title_name(self) -> str:
        """Uniform pick from the fixed title vocabulary"""
        return self.fake.random_element(TITLES)

    def generate_author(self) -> Dict[str, str]:
        return {
            "firstName": self.fake.first_name(),
            "lastName": self.fake.last_name()
        }

    def generate_content(self) -> str:
        return " ".join(self.fake.sentences())

    def generate_blog_post(self, **overrides) -> Dict[str, Any]:
        """Generate one blog post document"""
        data = {
            "author": self.generate_author(),
            "title": self.generate_title_name(),
            "content": self.generate_content(),
            "created": self.fake.date_time_between(start_date="-1d", end_date="now", tzinfo=timezone.utc)
        }
        data.update(overrides)
        return data

    def generate_blog_posts(self, count: int) -> List[Dict[str, Any]]:
        return [self.generate_blog_post() for _ in range(count)]

    def generate_create_payload(self, **overrides) -> Dict[str, Any]:
        """JSON body for POST /posts; created is left to the server"""
        data = {
            "author": self.generate_author(),
            "title": self.generate_title_name(),
            "content": self.generate_content()
        }
        data.update(overrides)
        return data

    def generate_update_payload(self, post_id: Optional[str] = None, **overrides) -> Dict[str, Any]:
        """Full JSON body for PUT /posts/{id}"""
        data = self.generate_create_payload()
        if post_id is not None:
            data["id"] = post_id
        data.update(overrides)
        return data
