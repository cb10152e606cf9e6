from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from dynamo_migrate.deleter import FilteredDeleter, build_filter
from dynamo_migrate.errors import NoFilterValuesError, SetupError


def make_client(pages):
    client = MagicMock()
    client.describe_table.return_value = {
        "Table": {
            "KeySchema": [
                {"AttributeName": "pk", "KeyType": "HASH"},
                {"AttributeName": "sk", "KeyType": "RANGE"},
            ]
        }
    }
    responses = []
    for index, items in enumerate(pages):
        response = {"Items": items}
        if index + 1 < len(pages):
            response["LastEvaluatedKey"] = {"pk": {"S": f"cursor-{index}"}}
        responses.append(response)
    client.scan.side_effect = responses
    return client


def item(pk, status="EXPIRED"):
    return {"pk": {"S": pk}, "sk": {"N": "1"}, "status": {"S": status}, "payload": {"S": "x"}}


def test_build_filter():
    assert build_filter("status", ["EXPIRED", "CANCELLED"]) == {
        "FilterExpression": "#attr IN (:val0, :val1)",
        "ExpressionAttributeNames": {"#attr": "status"},
        "ExpressionAttributeValues": {":val0": {"S": "EXPIRED"}, ":val1": {"S": "CANCELLED"}},
    }


def test_deletes_with_minimal_keys():
    client = make_client([[item("a"), item("b")]])

    result = FilteredDeleter(client).delete_where("orders", "status", ["EXPIRED"])

    assert (result.found, result.deleted, result.failed) == (2, 2, 0)
    client.describe_table.assert_called_once_with(TableName="orders")
    client.delete_item.assert_any_call(TableName="orders", Key={"pk": {"S": "a"}, "sk": {"N": "1"}})
    client.delete_item.assert_any_call(TableName="orders", Key={"pk": {"S": "b"}, "sk": {"N": "1"}})


def test_follows_every_scan_page():
    client = make_client([[item("a")], [item("b")], [item("c")]])

    result = FilteredDeleter(client).delete_where("orders", "status", ["EXPIRED"])

    assert result.found == 3
    assert client.scan.call_count == 3
    second = client.scan.call_args_list[1].kwargs
    assert second["ExclusiveStartKey"] == {"pk": {"S": "cursor-0"}}
    assert second["TableName"] == "orders"
    assert second["FilterExpression"] == "#attr IN (:val0)"


def test_empty_values_rejected_before_any_call():
    client = make_client([[]])

    with pytest.raises(NoFilterValuesError):
        FilteredDeleter(client).delete_where("orders", "status", [])

    client.describe_table.assert_not_called()
    client.scan.assert_not_called()


def test_failed_delete_is_not_counted():
    client = make_client([[item("a"), item("b")]])
    client.delete_item.side_effect = [
        None,
        ClientError({"Error": {"Code": "ConditionalCheckFailedException", "Message": "no"}}, "DeleteItem"),
    ]

    result = FilteredDeleter(client).delete_where("orders", "status", ["EXPIRED"])

    assert (result.found, result.deleted, result.failed) == (2, 1, 1)
    assert result.errors[0]["key"] == {"pk": {"S": "b"}, "sk": {"N": "1"}}


def test_dry_run_deletes_nothing():
    client = make_client([[item("a")]])

    result = FilteredDeleter(client, dry_run=True).delete_where("orders", "status", ["EXPIRED"])

    assert result.found == 1
    assert result.deleted == 0
    assert result.failed == 0
    client.delete_item.assert_not_called()


def test_missing_table_is_a_setup_error():
    client = make_client([[]])
    client.describe_table.side_effect = ClientError(
        {"Error": {"Code": "ResourceNotFoundException", "Message": "no table"}}, "DescribeTable"
    )

    with pytest.raises(SetupError, match="orders"):
        FilteredDeleter(client).delete_where("orders", "status", ["EXPIRED"])

    client.scan.assert_not_called()


def test_scan_failure_is_a_setup_error_after_earlier_pages():
    client = make_client([[item("a")], [item("b")]])
    client.scan.side_effect = [
        {"Items": [item("a")], "LastEvaluatedKey": {"pk": {"S": "cursor-0"}}},
        ClientError({"Error": {"Code": "AccessDeniedException", "Message": "denied"}}, "Scan"),
    ]

    with pytest.raises(SetupError, match="page 2"):
        FilteredDeleter(client).delete_where("orders", "status", ["EXPIRED"])

    client.delete_item.assert_called_once_with(TableName="orders", Key={"pk": {"S": "a"}, "sk": {"N": "1"}})
