"""Unit tests for the StatusMapping entity."""

from recordgate.domain.entities.status_mapping import StatusMapping


class TestStatusMapping:
    def test_from_list(self) -> None:
        mapping = StatusMapping.from_data(
            [
                {"value": "published", "name": "Published", "published": True},
                {"value": "draft", "name": "Draft"},
                {"value": "deleted", "name": "Deleted", "soft_delete": True, "color": "red"},
            ]
        )

        assert len(mapping) == 3
        assert mapping.get_all_statuses_value() == ["published", "draft", "deleted"]
        assert mapping.get_published_statuses_value() == ["published"]
        assert mapping.get_soft_delete_statuses_value() == ["deleted"]
        assert list(mapping)[2].attributes == {"color": "red"}

    def test_from_dict_keyed_by_value(self) -> None:
        mapping = StatusMapping.from_data(
            {
                1: {"name": "Active", "published": True},
                0: {"name": "Inactive"},
            }
        )

        assert mapping.get_all_statuses_value() == [1, 0]
        assert mapping.get_published_statuses_value() == [1]

    def test_name_defaults_to_value(self) -> None:
        mapping = StatusMapping.from_data([{"value": 2}])
        assert list(mapping)[0].name == "2"

    def test_empty(self) -> None:
        assert StatusMapping.from_data(None).is_empty()
        assert StatusMapping.from_data([]).is_empty()
        assert StatusMapping().get_all_statuses_value() == []

    def test_to_list_keeps_extra_attributes(self) -> None:
        data = [{"value": "draft", "name": "Draft", "published": False, "soft_delete": False, "color": "gray"}]
        assert StatusMapping.from_data(data).to_list() == data

    def test_from_data_does_not_mutate_input(self) -> None:
        data = [{"value": "draft", "name": "Draft"}]
        StatusMapping.from_data(data)
        assert data == [{"value": "draft", "name": "Draft"}]
