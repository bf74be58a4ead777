QUOTE_KEY = "quote"


class RequestQuote:
    """The product the quote form is currently open for."""

    def __init__(self, session):
        self.session = session

    @property
    def product_id(self):
        state = self.session.get(QUOTE_KEY) or {}
        return state.get("product_id")

    @property
    def is_open(self):
        return self.product_id is not None

    def open(self, product):
        self.session[QUOTE_KEY] = {"product_id": product.id, "name": product.name}
        self.session.modified = True

    def close(self):
        self.session.pop(QUOTE_KEY, None)
        self.session.modified = True

    def is_for(self, product_id):
        return self.product_id == int(product_id)
