"""GraphQL documents used by the FoodHub client."""

CART_FIELDS = """
fragment CartFields on Cart {
  id
  userId
  restaurantId
  restaurant {
    id
    name
    address
  }
  items {
    menuItemId
    menuItem {
      id
      name
      description
      price
      image
    }
    quantity
    price
    name
  }
  totalAmount
  createdAt
  updatedAt
}
"""

ORDER_FIELDS = """
fragment OrderFields on Order {
  id
  userId
  restaurantId
  restaurant {
    id
    name
    address
    cuisineType
  }
  items {
    menuItemId
    menuItem {
      id
      name
      description
      price
      image
    }
    quantity
    price
    name
  }
  totalAmount
  status
  deliveryAddress
  deliveryLocation {
    lat
    lng
  }
  specialInstructions
  createdAt
  updatedAt
}
"""

USER_FIELDS = """
fragment UserFields on User {
  id
  name
  email
  role
}
"""

# Cart queries

GET_CART = (
    """
query GetCart($restaurantId: ID!) {
  getCart(restaurantId: $restaurantId) {
    ...CartFields
  }
}
"""
    + CART_FIELDS
)

GET_USER_CARTS = (
    """
query GetUserCarts {
  getUserCarts {
    ...CartFields
  }
}
"""
    + CART_FIELDS
)

# Cart mutations

ADD_TO_CART = (
    """
mutation AddToCart($restaurantId: ID!, $menuItemId: ID!, $quantity: Int) {
  addToCart(restaurantId: $restaurantId, menuItemId: $menuItemId, quantity: $quantity) {
    ...CartFields
  }
}
"""
    + CART_FIELDS
)

UPDATE_CART_ITEM = (
    """
mutation UpdateCartItem($restaurantId: ID!, $menuItemId: ID!, $quantity: Int!) {
  updateCartItem(restaurantId: $restaurantId, menuItemId: $menuItemId, quantity: $quantity) {
    ...CartFields
  }
}
"""
    + CART_FIELDS
)

REMOVE_FROM_CART = (
    """
mutation RemoveFromCart($restaurantId: ID!, $menuItemId: ID!) {
  removeFromCart(restaurantId: $restaurantId, menuItemId: $menuItemId) {
    ...CartFields
  }
}
"""
    + CART_FIELDS
)

CLEAR_CART = """
mutation ClearCart($restaurantId: ID!) {
  clearCart(restaurantId: $restaurantId)
}
"""

# Orders

CREATE_ORDER = (
    """
mutation CreateOrder($input: CreateOrderInput!) {
  createOrder(input: $input) {
    ...OrderFields
  }
}
"""
    + ORDER_FIELDS
)

CANCEL_ORDER = (
    """
mutation CancelOrder($orderId: ID!) {
  cancelOrder(orderId: $orderId) {
    ...OrderFields
  }
}
"""
    + ORDER_FIELDS
)

GET_ORDER_BY_ID = (
    """
query GetOrderById($orderId: ID!) {
  getOrderById(orderId: $orderId) {
    ...OrderFields
  }
}
"""
    + ORDER_FIELDS
)

GET_USER_ORDERS = (
    """
query GetUserOrders($limit: Int, $offset: Int) {
  getUserOrders(limit: $limit, offset: $offset) {
    ...OrderFields
  }
}
"""
    + ORDER_FIELDS
)

# Auth

LOGIN_USER = (
    """
mutation LoginUser($input: LoginInput!) {
  loginUser(input: $input) {
    token
    user {
      ...UserFields
    }
  }
}
"""
    + USER_FIELDS
)

REGISTER_USER = (
    """
mutation RegisterUser($input: RegisterInput!) {
  registerUser(input: $input) {
    token
    user {
      ...UserFields
    }
  }
}
"""
    + USER_FIELDS
)

# Restaurants and menus

SEARCH_RESTAURANTS = """
query SearchRestaurants($keyword: String!, $limit: Int, $offset: Int) {
  searchRestaurants(keyword: $keyword, limit: $limit, offset: $offset) {
    id
    name
    description
    cuisineType
    address
    rating {
      average
      count
    }
    crowdLevel
  }
}
"""

GET_MENU_BY_RESTAURANT = """
query GetMenuByRestaurant($restaurantId: ID!) {
  getMenuByRestaurant(restaurantId: $restaurantId) {
    id
    restaurantId
    name
    description
    price
    category
    image
  }
}
"""

RESTAURANT_FIELDS = """
fragment RestaurantFields on Restaurant {
  id
  name
  description
  cuisineType
  location {
    lat
    lng
  }
  address
  rating {
    average
    count
  }
  crowdLevel
  images
}
"""

GET_RESTAURANT_BY_ID = """
query GetRestaurantById($id: ID!) {
  getRestaurantById(id: $id) {
    id
    name
    description
    cuisineType
    location {
      lat
      lng
    }
    address
    rating {
      average
      count
    }
    crowdLevel
    openingHours {
      day
      open
      close
      isClosed
    }
    images
    ownerId
    createdAt
    updatedAt
  }
}
"""

# Reviews

GET_REVIEWS_BY_RESTAURANT = (
    """
query GetReviewsByRestaurant($restaurantId: ID!, $limit: Int, $offset: Int) {
  getReviewsByRestaurant(restaurantId: $restaurantId, limit: $limit, offset: $offset) {
    id
    userId
    user {
      ...UserFields
    }
    restaurantId
    rating
    comment
    createdAt
    updatedAt
  }
}
"""
    + USER_FIELDS
)

ADD_REVIEW = """
mutation AddReview($input: CreateReviewInput!) {
  addReview(input: $input) {
    id
    userId
    restaurantId
    rating
    comment
    createdAt
  }
}
"""

# Favorites

GET_USER_FAVORITES = (
    """
query GetUserFavorites {
  getUserFavorites {
    ...RestaurantFields
  }
}
"""
    + RESTAURANT_FIELDS
)

ADD_FAVORITE_RESTAURANT = (
    """
mutation AddFavoriteRestaurant($restaurantId: ID!) {
  addFavoriteRestaurant(restaurantId: $restaurantId) {
    id
    favoriteRestaurants {
      ...RestaurantFields
    }
  }
}
"""
    + RESTAURANT_FIELDS
)

REMOVE_FAVORITE_RESTAURANT = (
    """
mutation RemoveFavoriteRestaurant($restaurantId: ID!) {
  removeFavoriteRestaurant(restaurantId: $restaurantId) {
    id
    favoriteRestaurants {
      ...RestaurantFields
    }
  }
}
"""
    + RESTAURANT_FIELDS
)
