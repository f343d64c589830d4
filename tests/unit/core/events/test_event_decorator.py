"""Unit tests for the EventDecorator registration API."""

from recordgate.core.events import Dispatcher, EventDecorator


class TestEventDecorator:
    """Tests for decorator-based registration."""

    def test_hook_decorator_registers_qualified_event(self) -> None:
        dispatcher = Dispatcher()
        events = EventDecorator(dispatcher)

        @events.on_insert_after("articles")
        def on_article(event, data, context):
            pass

        assert dispatcher.has_listeners("collection.insert.articles:after")
        assert not dispatcher.has_listeners("collection.insert:after")

    def test_hook_decorator_without_collection_is_generic(self) -> None:
        dispatcher = Dispatcher()
        events = EventDecorator(dispatcher)

        @events.on_delete_before()
        def on_any_delete(event, data, context):
            pass

        assert dispatcher.has_listeners("collection.delete:before")

    def test_decorator_returns_original_function(self) -> None:
        events = EventDecorator(Dispatcher())

        def original(event, data, context):
            return "unchanged"

        assert events.on_update_after("articles")(original) is original

    def test_hook_options_are_forwarded(self) -> None:
        dispatcher = Dispatcher()
        events = EventDecorator(dispatcher)

        @events.on_update_before("articles", priority=5, stop_on_error=True)
        def guard(event, data, context):
            pass

        listener = dispatcher.get_listeners_for_event("collection.update.articles:before")[0]
        assert listener.priority == 5
        assert listener.stop_on_error is True

    def test_drop_hook(self) -> None:
        dispatcher = Dispatcher()
        events = EventDecorator(dispatcher)

        @events.on_drop_after()
        def dropped(event, data, context):
            pass

        assert dispatcher.has_listeners("collection.drop:after")

    def test_filter_decorators(self) -> None:
        dispatcher = Dispatcher()
        events = EventDecorator(dispatcher)

        @events.filter_select_after("posts")
        def hide_secret(event, data, context):
            return [{k: v for k, v in row.items() if k != "secret"} for row in data]

        @events.filter_update_before()
        def strip(event, data, context):
            return {k: v.strip() if isinstance(v, str) else v for k, v in data.items()}

        rows = dispatcher.apply_filter("collection.select.posts:after", [{"id": 1, "secret": "x"}])
        assert rows == [{"id": 1}]
        assert dispatcher.apply_filter("collection.update:before", {"title": " Hi "}) == {"title": "Hi"}

    def test_generic_on_and_filter(self) -> None:
        dispatcher = Dispatcher()
        events = EventDecorator(dispatcher)

        @events.on("postInsert")
        def after_upsert(event, data, context):
            pass

        @events.filter("custom.event")
        def double(event, data, context):
            return data * 2

        assert dispatcher.has_listeners("postInsert")
        assert dispatcher.apply_filter("custom.event", 21) == 42
        assert events.dispatcher is dispatcher
