"""Requêtes et mutations GraphQL de l'API Admin Shopify."""

SHOP_CONFIG_QUERY = """
query shopConfig {
  shop {
    name
    taxesIncluded
  }
}
"""

ORDER_TAGS_QUERY = """
query getOrderTags($id: ID!) {
  order(id: $id) {
    id
    tags
  }
}
"""

ORDER_ATTRIBUTES_QUERY = """
query getOrderAttributes($id: ID!) {
  order(id: $id) {
    id
    customAttributes {
      key
      value
    }
  }
}
"""

UPDATE_ORDER_ATTRIBUTES_MUTATION = """
mutation updateOrderAttributes($input: OrderInput!) {
  orderUpdate(input: $input) {
    order {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""
